import io
import threading
import unittest
from typing import List

import click

from fssh.builtins import Cp, default_registry
from fssh.command import Command
from fssh.errors import UsageError
from fssh.registry import CommandRegistry


class Echo(Command):
    name = "echo"
    description = "print arguments"
    synopsis = "([flags]) [words]"
    examples = ["echo -n hello"]

    def params(self) -> List[click.Parameter]:
        return [click.Option(["-n", "no_newline"], is_flag=True, default=False, help="no newline")]

    def execute(self, shell):
        shell.stdout.write(" ".join(self.args) + ("" if self.no_newline else "\n"))


class TestCommand(unittest.TestCase):
    def test_parse(self):
        cmd = Echo()
        self.assertFalse(cmd.parse(["-n", "a", "b"]))
        self.assertTrue(cmd.no_newline)
        self.assertEqual(cmd.args, ["a", "b"])

    def test_help_flag(self):
        self.assertTrue(Echo().parse(["-h"]))
        self.assertTrue(Echo().parse(["--help"]))

    def test_unknown_flag(self):
        with self.assertRaises(UsageError) as cm:
            Echo().parse(["-x"])
        self.assertIn("-x", str(cm.exception))

    def test_combined_short_flags(self):
        cmd = Cp()
        cmd.parse(["-rf", "a", "b"])
        self.assertTrue(cmd.is_recursive)
        self.assertTrue(cmd.is_force)
        self.assertFalse(cmd.is_dry_run)

    def test_reset(self):
        cmd = Echo()
        cmd.parse(["-n", "a"])
        cmd.reset()
        self.assertFalse(cmd.no_newline)
        self.assertEqual(cmd.args, [])

    def test_usage(self):
        out = io.StringIO()
        Echo().usage(out)
        self.assertEqual(
            out.getvalue(),
            "Usage:\n  echo ([flags]) [words]\nFlags:\n  -n\tno newline\nExamples:\n  echo -n hello\n",
        )


class TestCommandRegistry(unittest.TestCase):
    def setUp(self):
        self.registry = CommandRegistry()
        self.registry.register_command(Echo)
        self.registry.register_command(Cp)

    def test_acquire_unknown(self):
        self.assertIsNone(self.registry.acquire("unknown"))

    def test_release_reuses_instance(self):
        cmd = self.registry.acquire("echo")
        self.registry.release(cmd)
        self.assertIs(self.registry.acquire("echo"), cmd)

    def test_acquire_without_release_builds_new_instance(self):
        first = self.registry.acquire("echo")
        self.assertIsNot(self.registry.acquire("echo"), first)

    def test_release_resets_flags(self):
        cmd = self.registry.acquire("cp")
        cmd.parse(["-r", "-d", "a", "b"])
        self.assertTrue(cmd.is_recursive)
        self.registry.release(cmd)

        again = self.registry.acquire("cp")
        self.assertIs(again, cmd)
        self.assertFalse(again.is_recursive)
        self.assertFalse(again.is_dry_run)
        self.assertEqual(again.args, [])

    def test_borrow_releases_on_error(self):
        with self.assertRaises(RuntimeError):
            with self.registry.borrow("cp") as cmd:
                cmd.parse(["-r"])
                raise RuntimeError("boom")
        self.assertIs(self.registry.acquire("cp"), cmd)
        self.assertFalse(cmd.is_recursive)

    def test_borrow_unknown(self):
        with self.registry.borrow("unknown") as cmd:
            self.assertIsNone(cmd)

    def test_last_registration_wins(self):
        class Shout(Echo):
            pass

        self.registry.register("echo", Shout)
        self.assertIsInstance(self.registry.acquire("echo"), Shout)

    def test_deregister(self):
        self.registry.deregister("echo")
        self.assertIsNone(self.registry.acquire("echo"))
        self.assertNotIn("echo", self.registry)
        self.assertEqual(self.registry.sorted_names(), ["cp"])

    def test_release_after_deregister_drops_instance(self):
        cmd = self.registry.acquire("echo")
        self.registry.deregister("echo")
        self.registry.release(cmd)
        self.registry.register_command(Echo)
        self.assertIsNot(self.registry.acquire("echo"), cmd)

    def test_release_after_reregister_drops_instance(self):
        class Shout(Echo):
            pass

        cmd = self.registry.acquire("echo")
        self.registry.register("echo", Shout)
        self.registry.release(cmd)
        self.assertIsInstance(self.registry.acquire("echo"), Shout)

    def test_pool_follows_registered_name(self):
        self.registry.register("say", Echo)
        cmd = self.registry.acquire("say")
        self.registry.release(cmd)
        self.assertIs(self.registry.acquire("say"), cmd)
        self.assertIsNot(self.registry.acquire("echo"), cmd)

    def test_sorted_names(self):
        self.assertEqual(self.registry.sorted_names(), ["cp", "echo"])
        self.registry.register("cat", Echo)
        self.assertEqual(self.registry.sorted_names(), ["cat", "cp", "echo"])

    def test_concurrent_register_and_acquire(self):
        errors = []

        def worker(i):
            try:
                for _ in range(50):
                    self.registry.register(f"cmd{i}", Echo)
                    cmd = self.registry.acquire("cp")
                    self.registry.release(cmd)
                    self.registry.sorted_names()
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(errors, [])
        self.assertEqual(len(self.registry.sorted_names()), 10)

    def test_default_registry(self):
        names = default_registry().sorted_names()
        self.assertEqual(
            names, ["!", "cat", "cd", "cp", "env", "exit", "help", "ls", "pwd", "rm"]
        )


if __name__ == '__main__':
    unittest.main()
