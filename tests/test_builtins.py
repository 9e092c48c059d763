import io
import os
import shutil
import unittest

from fssh.backends import MemoryBackend
from fssh.backends.memory import reset_stores
from fssh.builtins import default_registry
from fssh.errors import NotExistError
from fssh.router import Router
from fssh.session import Session
from fssh.shell import Shell


class BuiltinTestCase(unittest.TestCase):
    def setUp(self):
        reset_stores()
        self.addCleanup(reset_stores)
        self.backend = MemoryBackend("t")
        self.write("a.txt", b"hello")
        self.write("dir/g.txt", b"g\n")
        self.write("dir/sub/f.txt", b"f")
        self.backend.mkdir_all("other")

        session = Session.open("mem://t", Router())
        self.stdout = io.StringIO()
        self.stderr = io.StringIO()
        self.shell = Shell(session, default_registry(), stdout=self.stdout, stderr=self.stderr)

    def write(self, path, data):
        with self.backend.create(path) as f:
            f.write(data)

    def read(self, path, backend=None):
        with (backend or self.backend).open(path) as f:
            return f.read()

    def exists(self, path):
        try:
            self.backend.stat(path)
        except NotExistError:
            return False
        return True

    def run_line(self, line):
        self.stdout.seek(0)
        self.stdout.truncate()
        self.stderr.seek(0)
        self.stderr.truncate()
        self.assertTrue(self.shell.execute_line(line))
        return self.stdout.getvalue(), self.stderr.getvalue()


class TestLs(BuiltinTestCase):
    def test_short(self):
        out, err = self.run_line("ls")
        self.assertEqual(out, "a.txt\ndir/\nother/\n")
        self.assertEqual(err, "")

    def test_directory_argument(self):
        out, _ = self.run_line("ls dir")
        self.assertEqual(out, "g.txt\nsub/\n")

    def test_file_argument(self):
        out, _ = self.run_line("ls dir/g.txt")
        self.assertEqual(out, "g.txt\n")

    def test_glob(self):
        out, _ = self.run_line("ls 'dir/*'")
        self.assertEqual(out, "g.txt\nsub/\n")

    def test_long(self):
        out, _ = self.run_line("ls -l")
        lines = out.splitlines()
        self.assertEqual(len(lines), 3)
        self.assertRegex(lines[0], r"^-rw-r--r-- \d{4}-\d\d-\d\d \d\d:\d\d    5B a\.txt$")
        self.assertRegex(lines[1], r"^drwxr-xr-x \d{4}-\d\d-\d\d \d\d:\d\d    0B dir$")

    def test_other_backend(self):
        MemoryBackend("elsewhere").mkdir_all("x")
        out, _ = self.run_line("ls mem://elsewhere")
        self.assertEqual(out, "x/\n")

    def test_missing(self):
        out, err = self.run_line("ls missing")
        self.assertEqual(out, "")
        self.assertEqual(err, "fssh: error: stat missing: no such file or directory\n")


class TestCat(BuiltinTestCase):
    def test_adds_missing_newline(self):
        out, _ = self.run_line("cat a.txt")
        self.assertEqual(out, "hello\n")

    def test_keeps_newline(self):
        self.run_line("cd dir")
        out, _ = self.run_line("cat g.txt")
        self.assertEqual(out, "g\n")

    def test_directory(self):
        _, err = self.run_line("cat dir")
        self.assertEqual(err, "fssh: error: open dir: is a directory\n")

    def test_usage_without_arguments(self):
        _, err = self.run_line("cat")
        self.assertTrue(err.startswith("Usage:\n  cat [file]\n"))


class TestCdPwd(BuiltinTestCase):
    def test_cd_and_pwd(self):
        self.run_line("cd dir/sub")
        out, _ = self.run_line("pwd")
        self.assertEqual(out, "mem://t/dir/sub\n")
        self.assertEqual(self.shell.prompt, "mem://t/dir/sub> ")

        self.run_line("cd")
        out, _ = self.run_line("pwd")
        self.assertEqual(out, "mem://t\n")

    def test_cd_to_file(self):
        _, err = self.run_line("cd a.txt")
        self.assertEqual(err, "fssh: error: not directory: a.txt\n")
        out, _ = self.run_line("pwd")
        self.assertEqual(out, "mem://t\n")

    def test_cd_other_backend(self):
        self.run_line("cd mem://scratch/work")
        out, _ = self.run_line("pwd")
        self.assertEqual(out, "mem://scratch/work\n")


class TestCp(BuiltinTestCase):
    def test_copy_file(self):
        self.run_line("cp a.txt b.txt")
        self.assertEqual(self.read("b.txt"), b"hello")

    def test_copy_into_directory(self):
        self.run_line("cp a.txt other")
        self.assertEqual(self.read("other/a.txt"), b"hello")

    def test_existing_file_is_skipped(self):
        self.write("b.txt", b"old")
        out, err = self.run_line("cp a.txt b.txt")
        self.assertEqual(err, "skip copying a.txt because b.txt exists\n")
        self.assertEqual(self.read("b.txt"), b"old")

        self.run_line("cp -f a.txt b.txt")
        self.assertEqual(self.read("b.txt"), b"hello")

    def test_directory_needs_recursive(self):
        _, err = self.run_line("cp dir copy")
        self.assertEqual(err, "fssh: error: dir is a directory (not copied)\n")
        _, err = self.run_line("cp -f dir copy")
        self.assertEqual(err, "")
        self.assertFalse(self.exists("copy"))

    def test_recursive_to_new_directory(self):
        self.run_line("cp -r dir copy")
        self.assertEqual(self.read("copy/g.txt"), b"g\n")
        self.assertEqual(self.read("copy/sub/f.txt"), b"f")

    def test_recursive_into_existing_directory(self):
        self.run_line("cp -r dir other")
        self.assertEqual(self.read("other/dir/g.txt"), b"g\n")
        self.assertEqual(self.read("other/dir/sub/f.txt"), b"f")

    def test_recursive_onto_file(self):
        _, err = self.run_line("cp -r dir a.txt")
        self.assertEqual(err, "fssh: error: a.txt is not a directory (not copied)\n")

    def test_dry_run(self):
        out, _ = self.run_line("cp -r -d dir copy")
        self.assertEqual(
            out,
            "dry-run: mkdir copy\n"
            "dry-run: copy dir/g.txt to copy/g.txt\n"
            "dry-run: mkdir copy/sub\n"
            "dry-run: copy dir/sub/f.txt to copy/sub/f.txt\n",
        )
        self.assertFalse(self.exists("copy"))

    def test_across_backends(self):
        self.run_line("cp -r dir mem://backup/saved")
        backup = MemoryBackend("backup")
        self.assertEqual(self.read("saved/sub/f.txt", backup), b"f")

    def test_recursive_into_itself(self):
        _, err = self.run_line("cp -r dir dir/copy")
        self.assertEqual(
            err, "fssh: error: cannot copy a directory, dir, into itself, dir/copy\n"
        )
        self.assertFalse(self.exists("dir/copy"))
        self.assertEqual(self.shell.status, 1)

    def test_recursive_into_itself_by_location(self):
        _, err = self.run_line("cp -r dir mem://t/dir/sub")
        self.assertEqual(
            err, "fssh: error: cannot copy a directory, dir, into itself, dir/sub/dir\n"
        )
        self.assertFalse(self.exists("dir/sub/dir"))

    def test_flags_reset_between_lines(self):
        self.run_line("cp -r dir copy")
        _, err = self.run_line("cp dir copy2")
        self.assertEqual(err, "fssh: error: dir is a directory (not copied)\n")

    def test_missing_source(self):
        _, err = self.run_line("cp nope.txt b.txt")
        self.assertEqual(err, "fssh: error: stat nope.txt: no such file or directory\n")


class TestRm(BuiltinTestCase):
    def test_remove_file(self):
        self.run_line("rm a.txt")
        self.assertFalse(self.exists("a.txt"))

    def test_directory_needs_recursive(self):
        _, err = self.run_line("rm dir")
        self.assertEqual(err, "fssh: error: dir is a directory\n")
        self.assertTrue(self.exists("dir"))

        self.run_line("rm -r dir")
        self.assertFalse(self.exists("dir"))

    def test_force(self):
        _, err = self.run_line("rm -f missing dir a.txt")
        self.assertEqual(err, "")
        self.assertTrue(self.exists("dir"))
        self.assertFalse(self.exists("a.txt"))

    def test_missing(self):
        _, err = self.run_line("rm missing")
        self.assertEqual(err, "fssh: error: stat missing: no such file or directory\n")

    def test_dry_run(self):
        out, _ = self.run_line("rm -rd a.txt dir")
        self.assertEqual(out, "dry-run: remove a.txt\ndry-run: remove dir\n")
        self.assertTrue(self.exists("a.txt"))
        self.assertTrue(self.exists("dir"))


class TestEnv(BuiltinTestCase):
    KEY = "FSSH_TEST_ENV_KEY"

    def setUp(self):
        super().setUp()
        self.addCleanup(os.environ.pop, self.KEY, None)

    def test_set_and_show(self):
        backend = self.shell.session.backend
        self.run_line(f"env {self.KEY}=value")
        self.assertEqual(os.environ[self.KEY], "value")
        self.assertIsNot(self.shell.session.backend, backend)
        self.assertEqual(self.shell.session.display_path(), "mem://t")

        out, _ = self.run_line(f"env {self.KEY}")
        self.assertEqual(out, f"{self.KEY}=value\n")

    def test_list(self):
        os.environ[self.KEY] = "listed"
        out, _ = self.run_line("env")
        self.assertIn(f"{self.KEY}=listed\n", out)


class TestHelp(BuiltinTestCase):
    def test_list_commands(self):
        out, _ = self.run_line("help")
        self.assertTrue(out.startswith("Usage:\n  help ([command])\nCommands:\n"))
        self.assertIn("  cp\t\tcopy files\n", out)
        self.assertIn("  ls\t\tlist directory contents\n", out)
        self.assertNotIn("  help\t\t", out)

    def test_command_usage(self):
        out, _ = self.run_line("help rm")
        self.assertTrue(out.startswith("Usage:\n  rm ([flags]) [name]\nFlags:\n  -r\t"))

    def test_cd_usage_explains_root_anchoring(self):
        out, _ = self.run_line("help cd")
        self.assertIn("cd /DIR         # DIR below the root of the current backend\n", out)
        self.assertIn("cd file:///DIR  # DIR below the local filesystem root\n", out)

    def test_unknown_command(self):
        _, err = self.run_line("help nope")
        self.assertEqual(err, "fssh: command not found: nope\n")


class TestExit(BuiltinTestCase):
    def test_exit(self):
        self.assertFalse(self.shell.execute_line("exit"))


class TestShellEscape(BuiltinTestCase):
    @unittest.skipUnless(shutil.which("true") and shutil.which("false"), "needs true and false")
    def test_exit_status(self):
        _, err = self.run_line("! true")
        self.assertEqual(err, "")
        _, err = self.run_line("! false")
        self.assertEqual(err, "fssh: error: exit status 1\n")

    def test_missing_program(self):
        _, err = self.run_line("! fssh-no-such-program")
        self.assertIn("executable file not found", err)

    def test_flags_belong_to_the_program(self):
        cmd = self.shell.registry.acquire("!")
        self.assertFalse(cmd.parse(["ls", "-al"]))
        self.assertEqual(cmd.args, ["ls", "-al"])


if __name__ == '__main__':
    unittest.main()
