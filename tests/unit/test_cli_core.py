from nearby_zipcodes.cli import parse_args


def test_parse_args_defaults():
    args = parse_args(["run"])
    assert args.command == "run"
    assert args.config_dir == "./config"
    assert args.overlay_config_dir is None
    assert args.workers is None
    assert args.log_dir is None


def test_parse_args_accepts_workers_and_overlay():
    args = parse_args(["fetch", "--workers", "8", "--overlay-config-dir", "config/live"])
    assert args.command == "fetch"
    assert args.workers == 8
    assert args.overlay_config_dir == "config/live"
