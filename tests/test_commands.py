"""
Unit tests for the command interpreter
"""

import re
import unittest
import os
import sys

# Add vfsim to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from vfsim.commands import COMMANDS, execute_command, format_entry, help_text, parse_command
from vfsim.nodes import children_of, create_file, resolve_path
from vfsim.state import initialize_filesystem, root_of, switch_user


def run(fs, *lines):
    """Execute lines in sequence, returning the last output and final snapshot"""
    output = ''
    for line in lines:
        output, fs = execute_command(fs, line)
    return output, fs


class TestParsing(unittest.TestCase):
    """Test command line parsing and dispatch"""

    def test_parse_command(self):
        """Test whitespace splitting"""
        self.assertEqual(parse_command('  rm   -r  /a /b '), ('rm', ['-r', '/a', '/b']))
        self.assertEqual(parse_command('pwd'), ('pwd', []))
        self.assertEqual(parse_command(''), ('', []))
        self.assertEqual(parse_command('   '), ('', []))

    def test_unknown_command(self):
        """Test that unknown names leave the snapshot unchanged"""
        fs = initialize_filesystem()
        result = execute_command(fs, 'format c:')
        self.assertEqual(result.output, 'Command not found: format')
        self.assertIs(result.filesystem, fs)

    def test_names_match_exactly(self):
        """Test that command names are case sensitive"""
        fs = initialize_filesystem()
        self.assertEqual(execute_command(fs, 'PWD').output, 'Command not found: PWD')

    def test_registry(self):
        """Test the registered command table"""
        self.assertEqual(list(COMMANDS), ['ls', 'cd', 'pwd', 'mkdir', 'touch', 'cat', 'rm', 'clear', 'help'])
        self.assertEqual(COMMANDS['rm'].usage, 'rm [-r|-rf] <path>...')


class TestNavigation(unittest.TestCase):
    """Test pwd and cd"""

    def setUp(self):
        fs = initialize_filesystem(users={'guest': False})
        _, self.fs = run(fs, 'mkdir docs', 'cd docs', 'mkdir inner', 'cd /', 'touch f')

    def test_pwd(self):
        """Test printing the working directory"""
        self.assertEqual(run(self.fs, 'pwd')[0], '/')
        self.assertEqual(run(self.fs, 'cd /docs/inner', 'pwd')[0], '/docs/inner')

    def test_cd_without_arguments(self):
        """Test that cd alone returns to the root"""
        output, fs = run(self.fs, 'cd /docs/inner', 'cd')
        self.assertEqual(output, '')
        self.assertEqual(fs.current_directory, root_of(fs).id)

    def test_cd_parent(self):
        """Test cd .. and its no-op at the root"""
        output, fs = run(self.fs, 'cd /docs/inner', 'cd ..', 'pwd')
        self.assertEqual(output, '/docs')
        result = execute_command(self.fs, 'cd ..')
        self.assertEqual(result.output, '')
        self.assertIs(result.filesystem, self.fs)

    def test_cd_failures(self):
        """Test diagnostics for bad targets"""
        self.assertEqual(run(self.fs, 'cd /nope')[0], 'cd: /nope: No such file or directory')
        self.assertEqual(run(self.fs, 'cd /f')[0], 'cd: /f: Not a directory')

    def test_cd_requires_execute(self):
        """Test that entering a directory needs execute access"""
        fs = switch_user(self.fs, 'guest')
        result = execute_command(fs, 'cd /docs')
        self.assertEqual(result.output, 'cd: Permission denied')
        self.assertIs(result.filesystem, fs)

    def test_cd_does_not_mutate(self):
        """Test that changing directory yields a new snapshot"""
        _, fs = run(self.fs, 'cd /docs')
        self.assertEqual(self.fs.current_directory, root_of(self.fs).id)
        self.assertEqual(fs.current_directory, resolve_path(fs, '/docs').id)


class TestCreation(unittest.TestCase):
    """Test mkdir and touch"""

    def setUp(self):
        self.fs = initialize_filesystem(block_size=10, total_blocks=5, users={'guest': False})

    def test_mkdir_multiple(self):
        """Test creating several directories in order"""
        output, fs = run(self.fs, 'mkdir a b c')
        self.assertEqual(output, '')
        self.assertEqual([n.name for n in children_of(fs, fs.current_directory)], ['a', 'b', 'c'])

    def test_mkdir_keeps_earlier_successes(self):
        """Test that a failing name stops the command but keeps prior work"""
        output, fs = run(self.fs, 'mkdir a b a c')
        self.assertEqual(output, 'mkdir: A file or directory named "a" already exists')
        self.assertEqual([n.name for n in children_of(fs, fs.current_directory)], ['a', 'b'])

    def test_mkdir_targets_current_directory(self):
        """Test that mkdir creates inside the working directory only"""
        output, fs = run(self.fs, 'mkdir sub', 'mkdir sub/inner')
        self.assertEqual(output, "mkdir: Invalid name: 'sub/inner'")
        self.assertEqual(children_of(fs, resolve_path(fs, '/sub').id), [])
        _, fs = run(fs, 'cd sub', 'mkdir inner')
        self.assertIsNotNone(resolve_path(fs, '/sub/inner'))

    def test_touch(self):
        """Test creating empty files"""
        output, fs = run(self.fs, 'touch a.txt b.txt')
        self.assertEqual(output, '')
        a = resolve_path(fs, '/a.txt')
        self.assertEqual(a.content, '')
        self.assertEqual(a.block_allocation.blocks, ())

    def test_missing_operand(self):
        """Test commands that need arguments"""
        for name in ('mkdir', 'touch', 'cat', 'rm'):
            result = execute_command(self.fs, name)
            self.assertEqual(result.output, f'{name}: missing operand')
            self.assertIs(result.filesystem, self.fs)

    def test_permission_denied(self):
        """Test creation without write access"""
        fs = switch_user(self.fs, 'guest')
        result = execute_command(fs, 'touch a')
        self.assertEqual(result.output, 'touch: Permission denied')
        self.assertIs(result.filesystem, fs)


class TestListing(unittest.TestCase):
    """Test ls"""

    def setUp(self):
        fs = initialize_filesystem(users={'guest': False})
        _, fs = run(fs, 'mkdir docs')
        self.fs = create_file(fs, root_of(fs).id, 'notes.txt', 'hello')

    def test_long_lines(self):
        """Test the permission, size, date and name columns"""
        lines = run(self.fs, 'ls')[0].split('\n')
        self.assertEqual(len(lines), 2)
        self.assertRegex(lines[0], r'^drwxrwxrwx      0 \w{3} \d{2}, \d{2}:\d{2} [AP]M docs/$')
        self.assertRegex(lines[1], r'^-rw-rw-rw-      5 \w{3} \d{2}, \d{2}:\d{2} [AP]M notes\.txt$')

    def test_format_entry(self):
        """Test a single listing line"""
        node = resolve_path(self.fs, '/notes.txt')
        self.assertTrue(format_entry(node).endswith(' notes.txt'))

    def test_empty_directory(self):
        """Test listing a directory without children"""
        self.assertEqual(run(self.fs, 'ls /docs')[0], '(empty directory)')

    def test_file_path(self):
        """Test that listing a file prints its name"""
        self.assertEqual(run(self.fs, 'ls /notes.txt')[0], 'notes.txt')

    def test_missing_path(self):
        """Test listing a missing path"""
        self.assertEqual(run(self.fs, 'ls /nope')[0], 'ls: /nope: No such file or directory')

    def test_read_required(self):
        """Test listing without read access"""
        fs = switch_user(self.fs, 'guest')
        self.assertEqual(run(fs, 'ls')[0], 'ls: Permission denied')
        self.assertEqual(run(fs, 'ls /docs')[0], 'ls: Permission denied')


class TestCat(unittest.TestCase):
    """Test cat"""

    def setUp(self):
        fs = initialize_filesystem(users={'guest': False})
        _, fs = run(fs, 'mkdir docs')
        self.fs = create_file(fs, root_of(fs).id, 'notes.txt', 'hello\nworld')

    def test_cat(self):
        """Test printing file content"""
        self.assertEqual(run(self.fs, 'cat /notes.txt')[0], 'hello\nworld')
        self.assertEqual(run(self.fs, 'cat notes.txt')[0], 'hello\nworld')

    def test_cat_failures(self):
        """Test cat diagnostics"""
        self.assertEqual(run(self.fs, 'cat /nope')[0], 'cat: /nope: No such file or directory')
        self.assertEqual(run(self.fs, 'cat /docs')[0], 'cat: /docs: Is a directory')
        fs = switch_user(self.fs, 'guest')
        self.assertEqual(run(fs, 'cat /notes.txt')[0], 'cat: Permission denied')


class TestRemove(unittest.TestCase):
    """Test rm"""

    def setUp(self):
        fs = initialize_filesystem(block_size=4, total_blocks=10)
        _, fs = run(fs, 'mkdir x', 'touch a b')
        self.fs = create_file(fs, resolve_path(fs, '/x').id, 'f', 'abcdef')

    def test_remove_files(self):
        """Test removing several files"""
        output, fs = run(self.fs, 'rm a b')
        self.assertEqual(output, '')
        self.assertIsNone(resolve_path(fs, '/a'))
        self.assertIsNone(resolve_path(fs, '/b'))

    def test_errors_do_not_stop_removal(self):
        """Test that every path is attempted and errors are collected"""
        output, fs = run(self.fs, 'rm a missing x b')
        self.assertEqual(output, 'rm: missing: No such file or directory\n'
                                 'rm: x: Directory not empty')
        self.assertIsNone(resolve_path(fs, '/a'))
        self.assertIsNone(resolve_path(fs, '/b'))
        self.assertIsNotNone(resolve_path(fs, '/x'))

    def test_recursive_flags(self):
        """Test -r and -rf"""
        for flag in ('-r', '-rf'):
            output, fs = run(self.fs, f'rm {flag} x')
            self.assertEqual(output, '')
            self.assertIsNone(resolve_path(fs, '/x'))
            self.assertTrue(all(block.is_free for block in fs.blocks))

    def test_remove_working_directory(self):
        """Test that removing the working directory returns to its parent"""
        _, fs = run(self.fs, 'cd x', 'rm -r /x')
        self.assertEqual(run(fs, 'pwd')[0], '/')
        self.assertEqual(run(fs, 'ls')[0].count('\n'), 1)
        output, fs = run(fs, 'mkdir y')
        self.assertEqual(output, '')
        self.assertIsNotNone(resolve_path(fs, '/y'))

    def test_flag_without_paths(self):
        """Test rm -r without operands"""
        self.assertEqual(run(self.fs, 'rm -r')[0], 'rm: missing operand')

    def test_remove_root(self):
        """Test that the root is refused"""
        self.assertEqual(run(self.fs, 'rm -r /')[0], 'rm: /: Cannot remove root directory')


class TestTerminalCommands(unittest.TestCase):
    """Test help and clear at the interpreter level"""

    def test_help(self):
        """Test the help listing"""
        fs = initialize_filesystem()
        result = execute_command(fs, 'help')
        self.assertEqual(result.output, help_text())
        self.assertIn('  ls       - List directory contents', result.output)
        self.assertIn('  help     - Display this help message', result.output)
        self.assertIs(result.filesystem, fs)

    def test_clear(self):
        """Test that clear leaves the snapshot alone"""
        fs = initialize_filesystem()
        self.assertEqual(execute_command(fs, 'clear'), ('', fs))


if __name__ == '__main__':
    unittest.main()
