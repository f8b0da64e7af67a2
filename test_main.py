# test_main.py
import main


def _run(tmp_path, *args):
    return main.main(["--config", str(tmp_path / "cfg.json"), *args])


def test_locate_prints_grid(tmp_path, capsys):
    assert _run(tmp_path, "--locate", "51.4780", "-0.0015") == 0
    out = capsys.readouterr().out
    assert "Grid: IO91xl22" in out
    assert "Maidenhead: IO91xl94" in out


def test_locate_rejects_out_of_range(tmp_path, capsys):
    assert _run(tmp_path, "--locate", "95", "0") == 2
    assert "Invalid coordinate" in capsys.readouterr().err


def test_heading(tmp_path, capsys):
    assert _run(tmp_path, "--heading", "0", "-1", "0") == 0
    out = capsys.readouterr().out
    assert "Heading: 90°" in out
    assert "Direction: E" in out


def test_overrides_do_not_touch_file(tmp_path):
    ns = main.parse_args(["--gps-port", "COM3", "--mag-baud", "9600"])
    config = main.Config(str(tmp_path / "cfg.json"))
    main._apply_overrides(config, ns)
    assert config.get('gps', 'com_port') == "COM3"
    assert config.get('magnetometer', 'baud_rate') == 9600
    assert not (tmp_path / "cfg.json").exists()


def test_list_ports(tmp_path, capsys, monkeypatch):
    monkeypatch.setattr(main, "list_ports", lambda: ["/dev/ttyUSB0", "/dev/ttyACM0"])
    assert _run(tmp_path, "--list-ports") == 0
    assert capsys.readouterr().out.split() == ["/dev/ttyUSB0", "/dev/ttyACM0"]


def test_heading_rejects_non_finite(tmp_path, capsys):
    assert _run(tmp_path, "--heading", "nan", "0", "0") == 2
    assert "Invalid magnetic sample" in capsys.readouterr().err
    assert _run(tmp_path, "--heading", "0", "inf", "0") == 2


def test_save_config_writes_overrides(tmp_path, capsys):
    assert _run(tmp_path, "--gps-port", "/dev/ttyUSB0", "--save-config") == 0
    assert "Saved:" in capsys.readouterr().out

    config = main.Config(str(tmp_path / "cfg.json"))
    assert config.get('gps', 'com_port') == "/dev/ttyUSB0"


def test_reset_config(tmp_path):
    assert _run(tmp_path, "--gps-port", "COM3", "--save-config") == 0
    assert _run(tmp_path, "--reset-config") == 0
    assert main.Config(str(tmp_path / "cfg.json")).get('gps', 'com_port') == ''
