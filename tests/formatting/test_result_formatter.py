import csv
import io
import os
import shutil
import tempfile
import unittest

from rich.console import Console

from entra.models.directory_records import GroupRecord, MembershipEntry, UserRecord
from formatting.result_formatter import (
    CSV_COLUMNS,
    build_card_text,
    build_user_details,
    export_members_to_csv,
    member_row,
    render_groups,
    render_members_table,
    render_user_card,
)


def make_console():
    return Console(file=io.StringIO(), width=200, color_system=None)


class TestResultFormatter(unittest.TestCase):
    """Test cases for user cards, group listings and member exports."""

    def setUp(self):
        """Set up test environment before each test."""
        self.temp_dir = tempfile.mkdtemp()
        self.console = make_console()
        self.user = UserRecord(
            id='u1',
            display_name='Jane Doe',
            account_name='jdoe',
            mail='jane@example.com',
            user_principal_name='jane@example.com',
            department='Finance',
            job_title='Analyst',
            business_phones=('+1 555 0100', '+1 555 0101'),
        )
        self.manager = UserRecord(id='m1', display_name='Mary Boss', mail='mary@example.com')
        self.groups = [
            GroupRecord(id='g1', display_name='Finance-Team', description='Finance staff'),
            GroupRecord(id='g2', display_name='All Staff'),
        ]

    def tearDown(self):
        """Clean up after each test."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def output(self):
        return self.console.file.getvalue()

    # ----- user card -----

    def test_user_details_use_placeholder(self):
        details = dict(build_user_details(self.user, None))

        self.assertEqual(details['Name'], 'Jane Doe')
        self.assertEqual(details['Office'], 'N/A')
        self.assertEqual(details['Manager'], 'N/A')
        self.assertEqual(details['Business Phones'], '+1 555 0100, +1 555 0101')

    def test_render_user_not_found(self):
        self.assertIsNone(render_user_card(None, console=self.console))
        self.assertIn('User not found.', self.output())

    def test_render_user_card_with_groups(self):
        render_user_card(self.user, self.manager, self.groups, console=self.console)

        output = self.output()
        self.assertIn('Jane Doe', output)
        self.assertIn('Mary Boss', output)
        self.assertIn('Finance-Team', output)
        self.assertNotIn('No groups found for this user.', output)

    def test_render_user_card_without_groups(self):
        render_user_card(self.user, None, [], console=self.console)

        self.assertIn('No groups found for this user.', self.output())

    def test_export_user_card(self):
        """Test the card is written to <dir>/<network id>.txt."""
        path = render_user_card(self.user, self.manager, self.groups, self.temp_dir, console=self.console)

        self.assertEqual(path, os.path.join(self.temp_dir, 'jdoe.txt'))
        with open(path, encoding='utf-8') as export_file:
            content = export_file.read()
        self.assertTrue(content.startswith('User Details:'))
        self.assertIn('Manager:', content)
        self.assertIn('User Groups:', content)
        self.assertIn('- Finance-Team: Finance staff', content)
        self.assertIn('- All Staff: N/A', content)

    def test_export_user_card_failure_is_reported(self):
        missing_dir = os.path.join(self.temp_dir, 'does', 'not', 'exist')

        path = render_user_card(self.user, None, None, missing_dir, console=self.console)

        self.assertIsNone(path)
        self.assertIn('Failed to export card', self.output())

    def test_card_text_without_groups(self):
        self.assertNotIn('User Groups:', build_card_text(self.user, None, None))

    # ----- groups -----

    def test_render_groups(self):
        table = render_groups(self.groups, console=self.console)

        self.assertEqual(table.row_count, 2)
        self.assertIn('Finance staff', self.output())

    def test_render_groups_empty(self):
        self.assertIsNone(render_groups([], console=self.console))
        self.assertIn('No groups found.', self.output())

    # ----- members -----

    def test_member_row_blanks_missing_fields(self):
        entry = MembershipEntry(user=UserRecord(id='u2', display_name='John Roe', department='  '))

        self.assertEqual(member_row(entry), ['John Roe', '', '', '', '', ''])

    def test_render_members_table(self):
        members = [
            MembershipEntry(user=self.user, manager=self.manager),
            MembershipEntry(user=UserRecord(id='u2', display_name='John Roe')),
        ]

        table = render_members_table(members, 'Finance-Team', console=self.console)

        self.assertEqual(len(table.columns), 6)
        self.assertEqual(table.row_count, 2)
        self.assertIn('Team Members', self.output())

    def test_export_members_to_csv(self):
        """Test the header is written unquoted and every data field is quoted."""
        members = [
            MembershipEntry(user=self.user, manager=self.manager),
            MembershipEntry(user=UserRecord(id='u2', display_name='Roe, "Johnny"', user_principal_name='john@example.com')),
        ]
        path = os.path.join(self.temp_dir, 'Finance-Team.csv')

        result = export_members_to_csv(path, members, console=self.console)

        self.assertEqual(result, path)
        with open(path, encoding='utf-8', newline='') as csv_file:
            lines = csv_file.read().split('\n')
        self.assertEqual(lines[0], ','.join(CSV_COLUMNS))
        self.assertEqual(
            lines[1],
            '"Jane Doe","jdoe","jane@example.com","Finance","Analyst","Mary Boss","mary@example.com"',
        )
        self.assertEqual(lines[2], '"Roe, ""Johnny""","","john@example.com","","","",""')
        self.assertEqual(lines[3], '')

        with open(path, encoding='utf-8', newline='') as csv_file:
            rows = list(csv.reader(csv_file))
        self.assertEqual(len(rows), 3)
        self.assertEqual(rows[2][0], 'Roe, "Johnny"')
        self.assertIn('Exported to:', self.output())

    def test_export_members_to_csv_failure(self):
        path = os.path.join(self.temp_dir, 'missing', 'members.csv')

        self.assertIsNone(export_members_to_csv(path, [MembershipEntry(user=self.user)], console=self.console))
        self.assertFalse(os.path.exists(path))
        self.assertIn('Failed to export CSV', self.output())


if __name__ == '__main__':
    unittest.main()
