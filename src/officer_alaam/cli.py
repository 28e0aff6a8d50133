"""
Command-line interface for the officer network analysis pipeline.

Usage:
    officer-alaam                    # Build + descriptives + logit
    officer-alaam --build            # Build datasets and ALAAM inputs only
    officer-alaam --descriptives     # Descriptive tables
    officer-alaam --logit            # Complete-case and multiple-imputation logits
    officer-alaam --alaam --estimator pkg.module:func [--contagion simple]
    officer-alaam --network mentor   # Use mentor nominations only
    officer-alaam --wave1 w1.dta     # Override one input (.csv, .dta or .rds)
    officer-alaam --log              # Save output to timestamped log file
"""
from __future__ import annotations

import argparse
import logging
import sys
import time
from datetime import datetime
from pathlib import Path

from officer_alaam.config import (
    ALAAM_BURNIN,
    ALAAM_ITERATIONS,
    ALAAM_THIN,
    MI_IMPUTATIONS,
    NETWORK_SLOTS,
    Paths,
    setup_logging,
)

__all__ = ["main"]

logger = logging.getLogger("officer_alaam")


class TeeOutput:
    """Write output to both stdout and a file."""

    def __init__(self, filepath: Path):
        self.terminal = sys.stdout
        self.log = open(filepath, "w", encoding="utf-8")

    def write(self, message: str) -> None:
        self.terminal.write(message)
        self.log.write(message)

    def flush(self) -> None:
        self.terminal.flush()
        self.log.flush()

    def close(self) -> None:
        self.log.close()


def _banner() -> None:
    """Print the startup banner."""
    print()
    print("╔════════════════════════════════════════════════════════════╗")
    print("║      POLICE OFFICER NETWORKS & SUBGROUP INVITATION         ║")
    print("║              Network Covariates + ALAAM Inputs             ║")
    print("╚════════════════════════════════════════════════════════════╝")


def _section(title: str) -> None:
    print("\n" + "=" * 60)
    print(f" {title}")
    print("=" * 60)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="officer-alaam",
        description="Officer nomination networks and subgroup invitation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Stages:
  build         clean waves, build network, derive covariates, export ALAAM inputs
  descriptives  summary, invited vs not, network and missingness tables
  logit         complete-case logit and pooled multiple-imputation logit
  alaam         run an external ALAAM estimator on the exported inputs
        """,
    )
    parser.add_argument("--build", action="store_true", help="Build datasets only")
    parser.add_argument("--descriptives", action="store_true", help="Descriptive tables")
    parser.add_argument("--logit", action="store_true", help="Logistic regressions")
    parser.add_argument("--alaam", action="store_true", help="Run the external ALAAM estimator")
    parser.add_argument("--estimator", help="Estimator routine as 'module:function'")
    parser.add_argument("--network", choices=sorted(NETWORK_SLOTS), default="combined")
    parser.add_argument("--contagion", choices=["none", "simple"], default="none")
    parser.add_argument("--iterations", type=int, default=ALAAM_ITERATIONS)
    parser.add_argument("--burnin", type=int, default=ALAAM_BURNIN)
    parser.add_argument("--thin", type=int, default=ALAAM_THIN)
    parser.add_argument("--imputations", type=int, default=MI_IMPUTATIONS)
    parser.add_argument("--data-dir", type=Path, default=Path("data"))
    parser.add_argument("--wave1", type=Path, help="Wave 1 survey (.csv, .dta or .rds)")
    parser.add_argument("--wave2", type=Path, help="Wave 2 survey (.csv, .dta or .rds)")
    parser.add_argument("--incidents", type=Path, help="Incident log (.csv, .dta or .rds)")
    parser.add_argument("--results-dir", type=Path, default=Path("results"))
    parser.add_argument("--log", action="store_true", help="Save output to timestamped log file")
    parser.add_argument("--version", action="version", version="officer-alaam 1.0.0")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    start = time.time()

    paths = Paths(
        wave1=args.wave1 or args.data_dir / "survey_wave1.csv",
        wave2=args.wave2 or args.data_dir / "survey_wave2.csv",
        incidents=args.incidents or args.data_dir / "incident_log.csv",
        results_dir=args.results_dir,
    )

    if args.alaam and not args.estimator:
        parser.error("--alaam requires --estimator module:function")

    # Set up logging to file if requested
    tee = None
    log_path = None
    paths.results_dir.mkdir(parents=True, exist_ok=True)
    if args.log:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = paths.results_dir / f"officer_alaam_{timestamp}.log"
        tee = TeeOutput(log_path)
        sys.stdout = tee
    setup_logging()

    try:
        # Validate input files
        missing = paths.validate()
        if missing:
            print("Error: Missing input files:")
            for f in missing:
                print(f"  - {f}")
            return 1

        do_build = args.build
        do_desc = args.descriptives
        do_logit = args.logit
        do_alaam = args.alaam
        do_all = not any([do_build, do_desc, do_logit, do_alaam])

        _banner()
        if log_path:
            print(f"\n  Logging to: {log_path}")

        from officer_alaam.pipeline import build_all
        _section(f"BUILD DATASETS (network={args.network})")
        ds = build_all(paths, kind=args.network)

        if do_desc or do_all:
            _section("DESCRIPTIVES")
            from officer_alaam.descriptives import run_descriptives
            run_descriptives(ds.frame, ds.graph, ds.adjacency, paths.tables_dir)

        if do_logit or do_all:
            from officer_alaam.regressions import run_regressions
            run_regressions(ds.frame, paths.tables_dir, m=args.imputations)

        if do_alaam:
            from officer_alaam.estimator import CallableEstimator, run_alaam
            run_alaam(
                ds.alaam_inputs(),
                CallableEstimator.from_path(args.estimator),
                contagion=args.contagion,
                iterations=args.iterations,
                burnin=args.burnin,
                thin=args.thin,
                out_dir=paths.alaam_dir / args.network,
            )

        # Summary
        elapsed = time.time() - start
        print()
        print("═" * 60)
        print(f" COMPLETE ({elapsed:.1f}s)")
        print("═" * 60)
        print("\nOutputs:")
        print(f"  Datasets: {paths.results_dir}/")
        print(f"  ALAAM inputs: {paths.alaam_dir / args.network}/")
        if do_desc or do_logit or do_all:
            print(f"  Tables: {paths.tables_dir}/")
        if log_path:
            print(f"  Log: {log_path}")

        return 0

    finally:
        # Restore stdout, drop handlers bound to the tee, close log file
        if tee:
            sys.stdout = tee.terminal
            for h in list(logger.handlers):
                if getattr(h, "stream", None) is tee:
                    logger.removeHandler(h)
            tee.close()


if __name__ == "__main__":
    sys.exit(main())
