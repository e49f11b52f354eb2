import os.path
import tempfile
import unittest

from unitctl.core.service_manager import ServiceManager
from unitctl.core.stop_waiter import StopPolicy
from unitctl.models.errors import CommandError, LogDecodeError, Timeout, is_timeout
from unitctl.models.log import Log
from unitctl.models.service import RestartCondition, ServiceDescription, ServiceStatus

from .fakes import AlwaysActive, FakeClock, FakeJournal, FakeNotifier, FakeSystemctl, command_error


STATUS_OUTPUT = (b"Id=Thing\nLoadState=LoadState\nActiveState=ActiveState\n"
                 b"SubState=SubState\nUnitFileState=UnitFileState\n")

SHOW_ACTIVE_STATE = ["show", "--property=ActiveState", "foo"]


class ServiceManagerTestCase(unittest.TestCase):

    def setUp(self):
        self.rep = FakeNotifier()
        self.clock = FakeClock()

    def manager(self, systemctl, root_dir="", policy=None, journal=None):
        return ServiceManager(root_dir, self.rep, executor=systemctl,
                              log_query=journal or FakeJournal(),
                              stop_policy=policy or StopPolicy(5, 0.25, 0.25),
                              sleep=self.clock.sleep, clock=self.clock)


class TestSimpleCommands(ServiceManagerTestCase):

    def test_daemon_reload(self):
        systemctl = FakeSystemctl()
        self.manager(systemctl).daemon_reload()
        self.assertEqual(systemctl.argses, [["daemon-reload"]])

    def test_start(self):
        systemctl = FakeSystemctl()
        self.manager(systemctl).start("foo")
        self.assertEqual(systemctl.argses, [["start", "foo"]])

    def test_start_error(self):
        systemctl = FakeSystemctl(errors=[command_error("start", "foo")])
        with self.assertRaises(CommandError) as ctx:
            self.manager(systemctl).start("foo")
        self.assertEqual(ctx.exception.cmd, ["start", "foo"])
        self.assertEqual(ctx.exception.exit_code, 1)

    def test_kill(self):
        systemctl = FakeSystemctl()
        self.manager(systemctl).kill("foo", "HUP")
        self.assertEqual(systemctl.argses, [["kill", "foo", "-s", "HUP"]])

    def test_enable(self):
        systemctl = FakeSystemctl()
        self.manager(systemctl, root_dir="xyzzy").enable("foo")
        self.assertEqual(systemctl.argses, [["--root", "xyzzy", "enable", "foo"]])

    def test_disable(self):
        systemctl = FakeSystemctl()
        self.manager(systemctl, root_dir="xyzzy").disable("foo")
        self.assertEqual(systemctl.argses, [["--root", "xyzzy", "disable", "foo"]])

    def test_enable_without_root(self):
        systemctl = FakeSystemctl()
        self.manager(systemctl).enable("foo")
        self.assertEqual(systemctl.argses, [["enable", "foo"]])

    def test_disable_error(self):
        systemctl = FakeSystemctl(errors=[command_error("disable", "foo")])
        with self.assertRaises(CommandError):
            self.manager(systemctl).disable("foo")


class TestStop(ServiceManagerTestCase):

    def test_stop(self):
        systemctl = FakeSystemctl(outs=[
            b"",  # for the "stop" itself
            b"ActiveState=active\n",
            b"ActiveState=deactivating\n",
            b"ActiveState=inactive\n",
        ])
        self.manager(systemctl).stop("foo", 1)
        self.assertEqual(len(systemctl.argses), 4)
        self.assertEqual(systemctl.argses[0], ["stop", "foo"])
        for args in systemctl.argses[1:]:
            self.assertEqual(args, SHOW_ACTIVE_STATE)
        self.assertEqual(self.clock.sleeps, [0.25, 0.25])
        self.assertEqual(self.rep.msgs, [])

    def test_stop_failed_unit_converges(self):
        systemctl = FakeSystemctl(outs=[b"", b"ActiveState=failed\n"])
        self.manager(systemctl).stop("foo", 1)
        self.assertEqual(systemctl.argses, [["stop", "foo"], SHOW_ACTIVE_STATE])

    def test_stop_timeout(self):
        systemctl = AlwaysActive()
        policy = StopPolicy(fast_attempts=2, fast_delay=0.5, poll_interval=1)
        with self.assertRaises(Timeout) as ctx:
            self.manager(systemctl, policy=policy).stop("foo", 3)
        self.assertTrue(is_timeout(ctx.exception))
        self.assertNotIsInstance(ctx.exception, CommandError)
        self.assertEqual(self.rep.msgs, ["Waiting for foo to stop."])
        self.assertEqual(systemctl.argses[0], ["stop", "foo"])
        self.assertEqual(systemctl.argses[1:], [SHOW_ACTIVE_STATE] * 5)
        self.assertEqual(self.clock.sleeps, [0.5, 1, 1, 1])

    def test_stop_timeout_shorter_than_fast_phase(self):
        systemctl = AlwaysActive()
        policy = StopPolicy(fast_attempts=4, fast_delay=1, poll_interval=1)
        with self.assertRaises(Timeout):
            self.manager(systemctl, policy=policy).stop("foo", 0.5)
        self.assertEqual(len(systemctl.argses), 5)
        self.assertEqual(self.rep.msgs, ["Waiting for foo to stop."])

    def test_stop_real_clock_timeout(self):
        manager = ServiceManager("", self.rep, executor=AlwaysActive(),
                                 stop_policy=StopPolicy(2, 0.001, 0.001))
        with self.assertRaises(Timeout):
            manager.stop("foo", 0.01)
        self.assertEqual(self.rep.msgs, ["Waiting for foo to stop."])

    def test_stop_converges_after_notification(self):
        systemctl = FakeSystemctl(outs=[
            b"",
            b"ActiveState=active\n",
            b"ActiveState=active\n",
            b"ActiveState=active\n",
            b"ActiveState=inactive\n",
        ])
        policy = StopPolicy(fast_attempts=2, fast_delay=0.25, poll_interval=1)
        self.manager(systemctl, policy=policy).stop("foo", 10)
        self.assertEqual(len(systemctl.argses), 5)
        self.assertEqual(self.rep.msgs, ["Waiting for foo to stop."])
        self.assertEqual(self.clock.sleeps, [0.25, 1, 1])

    def test_stop_command_error(self):
        systemctl = FakeSystemctl(errors=[command_error("stop", "foo")])
        with self.assertRaises(CommandError):
            self.manager(systemctl).stop("foo", 1)
        self.assertEqual(systemctl.argses, [["stop", "foo"]])

    def test_stop_poll_error(self):
        systemctl = FakeSystemctl(outs=[b"", b"ActiveState=active\n"],
                                  errors=[None, None, command_error(*SHOW_ACTIVE_STATE)])
        with self.assertRaises(CommandError) as ctx:
            self.manager(systemctl).stop("foo", 1)
        self.assertNotIsInstance(ctx.exception, Timeout)
        self.assertEqual(len(systemctl.argses), 3)

    def test_stop_without_notifier_logs(self):
        manager = ServiceManager("", None, executor=AlwaysActive(),
                                 stop_policy=StopPolicy(1, 0, 0),
                                 sleep=self.clock.sleep, clock=self.clock)
        with self.assertLogs("unitctl.core.service_manager", "INFO") as logs:
            with self.assertRaises(Timeout):
                manager.stop("foo", 0)
        self.assertIn("Waiting for foo to stop.", "\n".join(logs.output))


class TestRestart(ServiceManagerTestCase):

    def test_restart(self):
        systemctl = FakeSystemctl(outs=[
            b"",  # for the "stop" itself
            b"ActiveState=inactive\n",
            b"",  # for the "start"
        ])
        self.manager(systemctl).restart("foo", 1)
        self.assertEqual(systemctl.argses, [
            ["stop", "foo"],
            SHOW_ACTIVE_STATE,
            ["start", "foo"],
        ])

    def test_restart_stop_timeout_does_not_start(self):
        systemctl = AlwaysActive()
        with self.assertRaises(Timeout):
            self.manager(systemctl, policy=StopPolicy(1, 0, 1)).restart("foo", 2)
        self.assertNotIn(["start", "foo"], systemctl.argses)

    def test_restart_stop_error_does_not_start(self):
        systemctl = FakeSystemctl(errors=[command_error("stop", "foo")])
        with self.assertRaises(CommandError):
            self.manager(systemctl).restart("foo", 1)
        self.assertEqual(systemctl.argses, [["stop", "foo"]])

    def test_restart_start_error(self):
        start_error = command_error("start", "foo")
        systemctl = FakeSystemctl(outs=[b"", b"ActiveState=inactive\n"],
                                  errors=[None, None, start_error])
        with self.assertRaises(CommandError) as ctx:
            self.manager(systemctl).restart("foo", 1)
        self.assertIs(ctx.exception, start_error)


class TestStatus(ServiceManagerTestCase):

    def test_status(self):
        systemctl = FakeSystemctl(outs=[STATUS_OUTPUT])
        out = self.manager(systemctl).status("foo")
        self.assertEqual(out, "UnitFileState; LoadState; ActiveState (SubState)")
        self.assertEqual(systemctl.argses, [
            ["show", "--property=Id,LoadState,ActiveState,SubState,UnitFileState", "foo"],
        ])

    def test_service_status(self):
        systemctl = FakeSystemctl(outs=[STATUS_OUTPUT])
        out = self.manager(systemctl).service_status("foo")
        self.assertEqual(out, ServiceStatus(
            service_file_name="foo",
            id="Thing",
            load_state="LoadState",
            active_state="ActiveState",
            sub_state="SubState",
            unit_file_state="UnitFileState",
        ))

    def test_status_error(self):
        systemctl = FakeSystemctl(errors=[command_error("show")])
        with self.assertRaises(CommandError):
            self.manager(systemctl).status("foo")


class TestLogs(ServiceManagerTestCase):

    def test_logs(self):
        journal = FakeJournal(out=b'{"a": 1}\n{"a": 2}\n')
        logs = self.manager(FakeSystemctl(), journal=journal).logs(["foo"])
        self.assertEqual(logs, [Log({"a": 1}), Log({"a": 2})])
        self.assertTrue(all(isinstance(entry, Log) for entry in logs))
        self.assertEqual(journal.calls, [["foo"]])

    def test_logs_query_error(self):
        journal = FakeJournal(error=command_error("journalctl"))
        with self.assertRaises(CommandError):
            self.manager(FakeSystemctl(), journal=journal).logs(["foo"])
        self.assertEqual(journal.calls, [["foo"]])

    def test_logs_bad_json(self):
        journal = FakeJournal(out=b"this is not valid json.")
        with self.assertRaises(LogDecodeError):
            self.manager(FakeSystemctl(), journal=journal).logs(["foo"])
        self.assertEqual(journal.calls, [["foo"]])


class TestUnitFiles(ServiceManagerTestCase):

    def setUp(self):
        super().setUp()
        self.tempdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tempdir.cleanup()

    def test_services_dir(self):
        self.assertEqual(str(ServiceManager("/tmp/root").services_dir), "/tmp/root/etc/systemd/system")
        self.assertEqual(str(ServiceManager().services_dir), "/etc/systemd/system")

    def test_write_mount_unit_file(self):
        manager = self.manager(FakeSystemctl(), root_dir=self.tempdir.name)
        name = manager.write_mount_unit_file("foo", "/var/lib/snappy/snaps/foo_1.0.snap", "/apps/foo/1.0")
        self.assertEqual(name, "apps-foo-1.0.mount")
        with open(os.path.join(self.tempdir.name, "etc/systemd/system", name)) as f:
            mount = f.read()
        self.assertEqual(mount, "[Unit]\n"
                                "Description=Squashfs mount unit for foo\n"
                                "\n"
                                "[Mount]\n"
                                "What=/var/lib/snappy/snaps/foo_1.0.snap\n"
                                "Where=/apps/foo/1.0\n"
                                "\n"
                                "[Install]\n"
                                "WantedBy=multi-user.target\n")

    def test_write_service_file(self):
        manager = self.manager(FakeSystemctl(), root_dir=self.tempdir.name)
        desc = ServiceDescription(snap_name="app", app_name="service", version="1.0",
                                  restart=RestartCondition.ALWAYS, type="simple")
        path = manager.write_service_file(desc)
        self.assertEqual(path.name, "app_service_1.0.service")
        self.assertEqual(path.read_text(), manager.gen_service_file(desc))
        self.assertIn("Restart=always\n", path.read_text())


if __name__ == "__main__":
    unittest.main()
