"""CLI tests covering argument parsing, dispatch and command output."""

from __future__ import annotations

import builtins as py_builtins
import importlib
import json
import logging
from io import StringIO
from types import SimpleNamespace
from unittest.mock import patch

import matplotlib

matplotlib.use("Agg")


def _invoke_main(argv: list[str], *, stub_subcommand: bool = False):
    """Invoke lunartopo.cli.main with patches applied.

    Args:
        argv: Arguments excluding program name.
        stub_subcommand: If True, replaces subcommands with functions that
            only record they were called.

    Returns:
        Namespace with: code (int), stdout (str), called (str|None), level (int|None),
        log_options (keyword arguments of the last logging setup).
    """
    import lunartopo.cli as cli

    importlib.reload(cli)

    commands = ("simulate", "path", "map", "show", "info")
    called: dict[str, bool] = {name: False for name in commands}
    level_holder: dict[str, object] = {"level": None, "options": {}}

    patchers = [
        patch(
            "lunartopo.log_config.set_global_log_level",
            side_effect=lambda lvl, **kw: level_holder.update(level=lvl, options=kw),
        )
    ]

    if stub_subcommand:
        for name in commands:
            patchers.append(
                patch.object(
                    cli,
                    f"{name}_command",
                    side_effect=lambda a, name=name: called.__setitem__(name, True),
                )
            )

    for p in patchers:
        p.start()

    out = SimpleNamespace(code=0, stdout="", called=None, level=None, log_options={})
    saved_print = py_builtins.print
    try:
        with (
            patch("sys.stdout", new_callable=StringIO) as buf,
            patch("sys.argv", ["lunartopo"] + argv),
        ):
            try:
                cli.main()
            except SystemExit as e:
                out.code = int(getattr(e, "code", 0) or 0)
            out.stdout = buf.getvalue()
            out.level = level_holder["level"]
            out.log_options = level_holder["options"]
            for name, was_called in called.items():
                if was_called:
                    out.called = name
                    break
    finally:
        py_builtins.print = saved_print
        for p in reversed(patchers):
            p.stop()

    return out


class TestDispatch:
    def test_no_args_shows_help_and_exits_nonzero(self):
        res = _invoke_main([])
        assert res.code == 1
        assert "Available commands" in res.stdout

    def test_verbose_flag_sets_debug_level(self):
        res = _invoke_main(["-v", "info"], stub_subcommand=True)
        assert res.called == "info"
        assert res.level == logging.DEBUG

    def test_default_log_level_is_info(self):
        res = _invoke_main(["info"], stub_subcommand=True)
        assert res.level == logging.INFO

    def test_quiet_suppresses_print_output(self):
        res = _invoke_main(["--quiet", "info"])
        assert res.code == 0
        assert res.stdout == ""

    def test_subcommand_dispatch(self):
        argvs = {
            "simulate": ["simulate", "t.txt"],
            "path": ["path", "t.txt", "A", "B"],
            "map": ["map", "t.txt"],
            "show": ["show", "t.txt"],
            "info": ["info"],
        }
        for name, argv in argvs.items():
            res = _invoke_main(argv, stub_subcommand=True)
            assert res.called == name


class TestTimer:
    def test_success_and_error(self):
        from lunartopo.cli import Timer

        with patch("sys.stdout", new_callable=StringIO) as buf:
            with Timer("Unit test op"):
                pass
            assert "Unit test op" in buf.getvalue()

        with patch("sys.stdout", new_callable=StringIO):
            try:
                with Timer("Failing op"):
                    raise RuntimeError("boom")
            except RuntimeError:
                pass
            else:
                raise AssertionError("Timer swallowed the exception")

    def test_elapsed_is_recorded(self):
        from lunartopo.cli import Timer

        with patch("sys.stdout", new_callable=StringIO):
            with Timer("Timed op") as timer:
                pass

        assert timer.elapsed >= 0.0
        assert timer.description == "Timed op"


class TestCommands:
    def test_info_prints_settings(self, settings_file):
        res = _invoke_main(["--settings", str(settings_file), "info"])
        assert res.code == 0
        assert "Duplicate Names: reject" in res.stdout

    def test_missing_settings_exits_2(self, tmp_path):
        res = _invoke_main(["--settings", str(tmp_path / "none.yml"), "info"])
        assert res.code == 2

    def test_path_prints_route_and_distance(self, tmp_path):
        topo = tmp_path / "abc.txt"
        topo.write_text(
            "NODECONFIGHEADER\nName: A\nLocation: 0,0,0\nLinked Nodes: B\n"
            "NODECONFIGHEADER\nName: B\nLocation: 3,4,0\nLinked Nodes: C\n"
            "NODECONFIGHEADER\nName: C\nLocation: 3,4,5\n"
        )
        res = _invoke_main(["path", str(topo), "A", "C"])
        assert res.code == 0
        assert "A -> B -> C" in res.stdout
        assert "Total distance: 10.000 m" in res.stdout

    def test_path_unreachable_exits_4(self, topology_file):
        res = _invoke_main(["path", str(topology_file), "UE0", "GatewayA"])
        assert res.code == 4
        assert "No path" in res.stdout

    def test_missing_topology_exits_2(self, tmp_path):
        res = _invoke_main(["path", str(tmp_path / "missing.txt"), "A", "B"])
        assert res.code == 2
        assert "missing.txt" in res.stdout

    def test_malformed_topology_exits_3(self, tmp_path):
        topo = tmp_path / "bad.txt"
        topo.write_text("Name: A\nLocation: x, y, z\n")
        res = _invoke_main(["simulate", str(topo)])
        assert res.code == 3
        assert "node 'A'" in res.stdout

    def test_simulate_success(self, topology_file):
        res = _invoke_main(["simulate", str(topology_file)])
        assert res.code == 0
        assert "Simulated 4 link(s)" in res.stdout

    def test_simulate_reports_ghost_link(self, tmp_path):
        topo = tmp_path / "ghost.txt"
        topo.write_text(
            "NODECONFIGHEADER\nName: A\nLocation: 0,0,0\n"
            "Transmission Frequency: 2100\nTransmission Power: 30\n"
            'Linked Nodes: "Ghost"\n'
        )
        res = _invoke_main(["simulate", str(topo)])
        assert res.code == 3
        assert "'Ghost'" in res.stdout

    def test_map_json(self, topology_file, tmp_path):
        out = tmp_path / "map.json"
        res = _invoke_main(["map", str(topology_file), "-o", str(out)])
        assert res.code == 0
        data = json.loads(out.read_text())
        assert [n["name"] for n in data["nodes"]] == ["GatewayA", "gNB0", "gNB1", "UE0"]

    def test_map_image(self, topology_file, tmp_path):
        out = tmp_path / "map.png"
        res = _invoke_main(["map", str(topology_file), "-o", str(out)])
        assert res.code == 0
        assert out.exists()

    def test_map_json_format_without_output_uses_json_suffix(
        self, topology_file, tmp_path, monkeypatch
    ):
        monkeypatch.chdir(tmp_path)
        res = _invoke_main(["map", str(topology_file), "--format", "json"])
        assert res.code == 0
        assert not (tmp_path / "lunar_node_map.png").exists()
        data = json.loads((tmp_path / "lunar_node_map.json").read_text())
        assert len(data["nodes"]) == 4

    def test_show_non_utf8_file_exits_3(self, tmp_path):
        topo = tmp_path / "latin1.txt"
        topo.write_bytes(b"NODECONFIGHEADER\nName: \xff\xfeA\n")
        res = _invoke_main(["show", str(topo)])
        assert res.code == 3
        assert "not valid UTF-8" in res.stdout

    def test_settings_logging_section_reconfigures_logging(self, tmp_path):
        settings = tmp_path / "log.yml"
        settings.write_text(
            "logging:\n"
            "  format: '%(levelname)s %(message)s'\n"
            "  datefmt: '%Y-%m-%d'\n"
        )
        res = _invoke_main(["--settings", str(settings), "info"])
        assert res.code == 0
        assert res.log_options["fmt"] == "%(levelname)s %(message)s"
        assert res.log_options["datefmt"] == "%Y-%m-%d"
        assert res.log_options["log_file"] is None

    def test_show_lists_blocks(self, topology_file):
        res = _invoke_main(["show", str(topology_file)])
        assert res.code == 0
        assert "Node Configuration #4" in res.stdout
        assert "Displayed 4 node configuration(s)." in res.stdout
