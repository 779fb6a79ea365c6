from sia.cli import run


raise SystemExit(run())
