import io
import logging
import os
import shutil
import sys
import tempfile
import unittest
from unittest.mock import patch, MagicMock

from rich.console import Console

from entra.exceptions import (
    DirectoryAuthenticationError,
    DirectoryConfigurationError,
    DirectoryRequestError,
)
from entra.models.directory_records import GroupRecord, LookupResult, MembershipEntry, UserRecord
from scripts.directory import directory_cli


class TestDirectoryCli(unittest.TestCase):
    """Test cases for the directory command line client."""

    def setUp(self):
        """Set up test environment before each test."""
        self.console = Console(file=io.StringIO(), width=200, color_system=None)
        patch('scripts.directory.directory_cli.console', new=self.console).start()
        patch('scripts.directory.directory_cli.configure_logging').start()
        self.get_config = patch('scripts.directory.directory_cli.EntraConfig.get_config', return_value={
            'tenant_id': 'tenant-1', 'client_id': 'client-1', 'client_secret': 'secret-1',
        }).start()
        self.facade_class = patch('scripts.directory.directory_cli.DirectoryFacade').start()
        self.facade = MagicMock()
        self.facade_class.from_config.return_value = self.facade
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        """Clean up after each test."""
        patch.stopall()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def output(self):
        return self.console.file.getvalue()

    # ----- get-user -----

    def test_get_user_requires_exactly_one_key(self):
        """Test two lookup keys are rejected before any directory call."""
        exit_code = directory_cli.main(['get-user', '--email', 'jane@example.com', '--name', 'Jane Doe'])

        self.assertEqual(exit_code, 0)
        self.assertIn('You must provide exactly one of --networkid, --email, or --name.', self.output())
        self.facade_class.from_config.assert_not_called()

    def test_get_user_requires_a_key(self):
        exit_code = directory_cli.main(['get-user'])

        self.assertEqual(exit_code, 0)
        self.facade_class.from_config.assert_not_called()

    def test_get_user_by_networkid_not_found(self):
        self.facade.resolve_user_by_account_id.return_value = LookupResult.empty()

        exit_code = directory_cli.main(['get-user', '--networkid', 'nobody'])

        self.assertEqual(exit_code, 0)
        self.facade.resolve_user_by_account_id.assert_called_once_with('nobody', False, None)
        self.assertIn('User not found.', self.output())

    def test_get_user_by_email_with_groups(self):
        self.facade.resolve_user_by_email.return_value = LookupResult(
            user=UserRecord(id='u1', display_name='Jane Doe', account_name='jdoe'),
            manager=UserRecord(id='m1', display_name='Mary Boss'),
            groups=[GroupRecord(id='g1', display_name='Finance-Team', description='Finance staff')],
        )

        exit_code = directory_cli.main([
            'get-user', '--email', 'jane@example.com', '--includegroup', '--groupfragment', 'Fin',
            '--export', self.temp_dir,
        ])

        self.assertEqual(exit_code, 0)
        self.facade.resolve_user_by_email.assert_called_once_with('jane@example.com', True, 'Fin')
        self.assertIn('Finance-Team', self.output())
        self.assertTrue(os.path.exists(os.path.join(self.temp_dir, 'jdoe.txt')))

    def test_get_user_by_name(self):
        self.facade.resolve_user_by_display_name.return_value = LookupResult.empty()

        directory_cli.main(['get-user', '--name', 'Jane Doe'])

        self.facade.resolve_user_by_display_name.assert_called_once_with('Jane Doe', False, None)

    def test_missing_credentials(self):
        self.facade_class.from_config.side_effect = DirectoryConfigurationError('Missing directory credentials')

        exit_code = directory_cli.main(['get-user', '--email', 'jane@example.com'])

        self.assertEqual(exit_code, 1)
        self.assertIn('Azure AD credentials are not properly set', self.output())

    def test_invalid_configuration(self):
        self.get_config.side_effect = DirectoryConfigurationError("GRAPH_TIMEOUT must be a whole number of seconds, got 'x'")

        exit_code = directory_cli.main(['get-group', 'search', '--name', 'Eng'])

        self.assertEqual(exit_code, 1)
        self.assertIn('Invalid configuration: GRAPH_TIMEOUT', self.output())
        self.facade_class.from_config.assert_not_called()

    def test_authentication_failure(self):
        self.facade_class.from_config.side_effect = DirectoryAuthenticationError('invalid_client')

        self.assertEqual(directory_cli.main(['get-group', 'search', '--name', 'Eng']), 1)
        self.assertIn('Authentication failed: invalid_client', self.output())

    def test_query_failure(self):
        self.facade.resolve_user_by_email.side_effect = DirectoryRequestError('Forbidden', status_code=403)

        exit_code = directory_cli.main(['get-user', '--email', 'jane@example.com'])

        self.assertEqual(exit_code, 1)
        self.assertIn('Directory query failed: Forbidden', self.output())

    # ----- get-user-groups -----

    def test_get_user_groups(self):
        self.facade.resolve_user_by_email.return_value = LookupResult(
            user=UserRecord(id='u1', display_name='Jane Doe', mail='jane@example.com'),
            groups=[],
        )

        exit_code = directory_cli.main(['get-user-groups', '--email', 'jane@example.com'])

        self.assertEqual(exit_code, 0)
        self.facade.resolve_user_by_email.assert_called_once_with(
            'jane@example.com', include_groups=True, group_name_fragment=None
        )
        self.assertIn('Groups for user Jane Doe (jane@example.com):', self.output())
        self.assertIn('No groups found.', self.output())

    # ----- get-group -----

    def test_group_search(self):
        self.facade.search_groups_by_name_prefix.return_value = [
            GroupRecord(id='g1', display_name='Eng-Platform', description='Platform team'),
        ]

        self.assertEqual(directory_cli.main(['get-group', 'search', '--name', 'Eng']), 0)
        self.facade.search_groups_by_name_prefix.assert_called_once_with('Eng')
        self.assertIn('Eng-Platform', self.output())

    def test_group_members_no_group(self):
        self.facade.find_first_group.return_value = None

        self.assertEqual(directory_cli.main(['get-group', 'members', '--group', 'Nothing']), 0)
        self.assertIn("No groups found with name starting with 'Nothing'.", self.output())
        self.facade.list_group_members.assert_not_called()

    def test_group_members_table(self):
        self.facade.find_first_group.return_value = GroupRecord(id='g1', display_name='Finance-Team')
        self.facade.list_group_members.return_value = [
            MembershipEntry(user=UserRecord(id='u1', display_name='Jane Doe', account_name='jdoe')),
        ]

        self.assertEqual(directory_cli.main(['get-group', 'members', '--group', 'Finance']), 0)
        self.facade.list_group_members.assert_called_once_with('g1')
        self.assertIn('Team Members', self.output())

    def test_group_members_csv(self):
        """Test members are exported to <dir>/<group argument>.csv."""
        self.facade.find_first_group.return_value = GroupRecord(id='g1', display_name='Finance-Team')
        self.facade.list_group_members.return_value = [
            MembershipEntry(user=UserRecord(id='u1', display_name='Jane Doe', account_name='jdoe'),
                            manager=UserRecord(id='m1', display_name='Mary Boss')),
            MembershipEntry(user=UserRecord(id='u2', display_name='John Roe')),
        ]

        exit_code = directory_cli.main(['get-group', 'members', '--group', 'Finance', '--csv', self.temp_dir])

        self.assertEqual(exit_code, 0)
        csv_path = os.path.join(self.temp_dir, 'Finance.csv')
        with open(csv_path, encoding='utf-8') as csv_file:
            lines = csv_file.read().splitlines()
        self.assertEqual(len(lines), 3)
        self.assertTrue(lines[0].startswith('DisplayName,NetworkID,Email'))
        self.assertNotIn('Team Members', self.output())

    # ----- http-request -----

    @patch('scripts.directory.directory_cli.HttpRequestUtility')
    def test_http_request(self, mock_utility_class):
        exit_code = directory_cli.main([
            'http-request', '--method', 'GET', '--url', 'https://api.example.com', '--headers', 'Accept:application/json',
        ])

        self.assertEqual(exit_code, 0)
        mock_utility_class.return_value.execute.assert_called_once_with(
            'GET', 'https://api.example.com', ['Accept:application/json'], None
        )
        self.facade_class.from_config.assert_not_called()

    @patch('http_utility.http_request.requests.get')
    def test_http_request_unsupported_method(self, mock_get):
        exit_code = directory_cli.main(['http-request', '--method', 'PATCH', '--url', 'https://api.example.com'])

        self.assertEqual(exit_code, 0)
        self.assertIn('Unsupported HTTP method: PATCH', self.output())
        mock_get.assert_not_called()

    def test_no_command_prints_help(self):
        with patch('argparse.ArgumentParser.print_help') as mock_help:
            self.assertEqual(directory_cli.main([]), 0)
        mock_help.assert_called_once()

    def test_get_group_without_subcommand_prints_group_help(self):
        with patch('argparse.ArgumentParser.print_help', autospec=True) as mock_help:
            self.assertEqual(directory_cli.main(['get-group']), 0)

        mock_help.assert_called_once()
        help_parser = mock_help.call_args[0][0]
        self.assertEqual(help_parser.prog, 'directory-cli get-group')
        self.facade_class.from_config.assert_not_called()

    def test_keyboard_interrupt(self):
        self.facade_class.from_config.side_effect = KeyboardInterrupt

        self.assertEqual(directory_cli.main(['get-group', 'search', '--name', 'Eng']), 130)


class TestConfigureLogging(unittest.TestCase):
    """Test cases for log level and log file setup."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.basic_config = patch('scripts.directory.directory_cli.logging.basicConfig').start()

    def tearDown(self):
        for handler in self.basic_config.call_args[1]['handlers'] if self.basic_config.called else []:
            handler.close()
        patch.stopall()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def configured(self, key):
        return self.basic_config.call_args[1][key]

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults_to_info_on_stderr(self):
        directory_cli.configure_logging()

        self.assertEqual(self.configured('level'), logging.INFO)
        self.assertEqual(self.configured('format'), '%(asctime)s - %(levelname)s - %(message)s')
        handlers = self.configured('handlers')
        self.assertEqual(len(handlers), 1)
        self.assertIs(handlers[0].stream, sys.stderr)

    def test_log_file_in_missing_directory(self):
        """Test a nested log path gets its directory created and a file handler."""
        log_path = os.path.join(self.temp_dir, 'logs', 'nested', 'directory_cli.log')

        directory_cli.configure_logging(log_path)

        self.assertTrue(os.path.isdir(os.path.dirname(log_path)))
        file_handlers = [h for h in self.configured('handlers') if isinstance(h, logging.FileHandler)]
        self.assertEqual(len(file_handlers), 1)
        self.assertEqual(file_handlers[0].baseFilename, os.path.abspath(log_path))

    @patch.dict(os.environ, {'LOG_LEVEL': 'DEBUG'})
    def test_quiet_overrides_log_level(self):
        directory_cli.configure_logging(quiet=True)

        self.assertEqual(self.configured('level'), logging.WARNING)

    @patch.dict(os.environ, {'LOG_LEVEL': 'debug'})
    def test_log_level_from_environment(self):
        directory_cli.configure_logging()

        self.assertEqual(self.configured('level'), logging.DEBUG)

    @patch.dict(os.environ, {'LOG_LEVEL': 'chatty'})
    def test_unknown_log_level_falls_back_to_info(self):
        directory_cli.configure_logging()

        self.assertEqual(self.configured('level'), logging.INFO)


if __name__ == '__main__':
    unittest.main()
