# src/netsim/app/launcher.py
import json
import sys
from typing import Optional, Sequence

from netsim.app.options import resolve_options
from netsim.core.errors import NetworkError
from netsim.core.maps import load_map
from netsim.core.trials import synthesize
from netsim.logging_config import setup_logging


def run_headless(opts) -> dict:
    spec = load_map(opts.map_path)
    config = opts.apply(spec.config)
    result = synthesize(spec.grid, spec.terminals, config)
    out = result.to_dict()
    out["map"] = spec.name
    return out


def main(argv: Optional[Sequence[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    try:
        opts = resolve_options(argv)
        setup_logging(level=opts.log_level, log_file=opts.log_file)
        if opts.headless:
            print(json.dumps(run_headless(opts)))
            return 0
        # pygame only loads when a window is wanted
        from netsim.app.viewer import main as viewer_main
        viewer_main(opts)
        return 0
    except (NetworkError, OSError) as e:
        print(f"netsim: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
