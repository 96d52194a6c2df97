"""Create/update/skip decision for an imported item."""

from typing import Union

from models import ActionType, ImportAction, ImportMode

SKIP_EXISTS = 'exists (mode=create)'
SKIP_NOT_FOUND = 'not found (mode=update)'


def decide_action(mode: Union[ImportMode, str], exists: bool) -> ImportAction:
    """
    Decide what to do with a local item given the remote state.

    ======  ======  ======  =========================
    mode    exists  action  reason
    ======  ======  ======  =========================
    create  no      CREATE
    create  yes     SKIP    exists (mode=create)
    update  yes     UPDATE
    update  no      SKIP    not found (mode=update)
    sync    yes     UPDATE
    sync    no      CREATE
    ======  ======  ======  =========================

    Args:
        mode: Import mode (enum or its string value)
        exists: Whether an item with the same slug exists remotely

    Returns:
        ImportAction (``reason`` set only for skips)
    """
    mode = ImportMode(mode)

    if mode == ImportMode.CREATE:
        if exists:
            return ImportAction(ActionType.SKIP, SKIP_EXISTS)
        return ImportAction(ActionType.CREATE)

    if mode == ImportMode.UPDATE:
        if exists:
            return ImportAction(ActionType.UPDATE)
        return ImportAction(ActionType.SKIP, SKIP_NOT_FOUND)

    return ImportAction(ActionType.UPDATE if exists else ActionType.CREATE)
