"""Tests for the command-line entry point."""

import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest.mock import patch

import wpsync
from orchestrator import SetupError
from orchestrator.sync_report import EXPORT, IMPORT, SyncReport

CONNECTION = ['--url', 'https://example.com', '--user', 'admin', '--password', 'abcd efgh']
CLEAN_ENV = {key: value for key, value in os.environ.items() if not key.startswith('WP_REMOTE_')}


class TestArgumentParser(unittest.TestCase):
    def test_export_arguments(self):
        args = wpsync.create_argument_parser().parse_args(
            ['export', '-t', 'pages', '-s', 'draft', '-o', './out', '--no-media', '-vv']
        )
        self.assertEqual(args.command, 'export')
        self.assertEqual(args.type, 'pages')
        self.assertEqual(args.status, 'draft')
        self.assertEqual(args.output, './out')
        self.assertTrue(args.no_media)
        self.assertEqual(args.verbose, 2)

    def test_import_arguments(self):
        args = wpsync.create_argument_parser().parse_args(['import', '-i', './in', '-m', 'update', '--dry-run'])
        self.assertEqual(args.command, 'import')
        self.assertEqual(args.mode, 'update')
        self.assertTrue(args.dry_run)

    def test_command_required(self):
        with redirect_stderr(io.StringIO()), self.assertRaises(SystemExit):
            wpsync.create_argument_parser().parse_args([])


@patch.dict(os.environ, CLEAN_ENV, clear=True)
class TestMain(unittest.TestCase):
    def run_main(self, argv):
        with redirect_stdout(io.StringIO()), redirect_stderr(io.StringIO()) as err:
            code = wpsync.main(argv)
        return code, err.getvalue()

    def test_missing_config_file(self):
        code, err = self.run_main(['export', '--config', '/nonexistent/config.yaml'] + CONNECTION)
        self.assertEqual(code, 1)
        self.assertIn('File not found', err)

    def test_invalid_configuration(self):
        code, err = self.run_main(['export', '--url', 'https://example.com', '--user', 'admin'])
        self.assertEqual(code, 1)
        self.assertIn('wordpress.app_password', err)

    def test_invalid_yaml(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'config.yaml'
            path.write_text('wordpress: [unclosed\n')
            code, _ = self.run_main(['export', '--config', str(path)] + CONNECTION)
        self.assertEqual(code, 1)

    @patch('wpsync.setup_logging')
    @patch('wpsync.SyncOrchestrator')
    def test_export_success(self, orchestrator_cls, _setup_logging):
        orchestrator_cls.return_value.run_export.return_value = SyncReport(EXPORT).finish()

        code, _ = self.run_main(['export'] + CONNECTION)

        self.assertEqual(code, 0)
        config = orchestrator_cls.call_args.args[0]
        self.assertEqual(config['wordpress']['app_password'], 'abcd efgh')
        orchestrator_cls.return_value.run_import.assert_not_called()

    @patch('wpsync.setup_logging')
    @patch('wpsync.SyncOrchestrator')
    def test_import_dry_run(self, orchestrator_cls, _setup_logging):
        orchestrator_cls.return_value.run_import.return_value = SyncReport(IMPORT, dry_run=True).finish()

        code, _ = self.run_main(['import', '--dry-run'] + CONNECTION)

        self.assertEqual(code, 0)
        self.assertTrue(orchestrator_cls.call_args.args[0]['import']['dry_run'])

    @patch('wpsync.setup_logging')
    @patch('wpsync.SyncOrchestrator')
    def test_setup_failure(self, orchestrator_cls, _setup_logging):
        orchestrator_cls.return_value.run_export.side_effect = SetupError('Connection failed')
        code, _ = self.run_main(['export'] + CONNECTION)
        self.assertEqual(code, 1)

    @patch('wpsync.setup_logging')
    @patch('wpsync.SyncOrchestrator')
    def test_environment_credentials(self, orchestrator_cls, _setup_logging):
        orchestrator_cls.return_value.run_export.return_value = SyncReport(EXPORT).finish()
        env = {'WP_REMOTE_URL': 'https://env.test/', 'WP_REMOTE_USER': 'env', 'WP_REMOTE_APP_PASSWORD': 'pw'}

        with patch.dict(os.environ, env):
            code, _ = self.run_main(['export'])

        self.assertEqual(code, 0)
        self.assertEqual(orchestrator_cls.call_args.args[0]['wordpress']['url'], 'https://env.test')


if __name__ == '__main__':
    unittest.main()
