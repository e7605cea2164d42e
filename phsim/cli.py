import argparse
import json
import logging
import os
import sys
import time

# Adjust path to find modules if running locally without install
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from phsim.core.engine import SimulationEngine
from phsim.core.enums import ConvergencePolicy, RangePolicy
from phsim.core.errors import PHSError
from phsim.core.iso_examples import run_examples, compare_with_targets
from phsim.core.recorder import DataRecorder
from phsim.core.runner import SimulationRunner
from phsim.core.state import SimulationConfig

logger = logging.getLogger(__name__)


def load_config(path: str) -> dict:
    with open(path, "r") as f:
        return json.load(f)


def build_sim_config(options: dict) -> SimulationConfig:
    """SimulationConfig from the optional "config" block of a run file."""
    config = SimulationConfig()
    if "range_policy" in options:
        config.range_policy = RangePolicy(options["range_policy"])
    if "standard_core_policy" in options:
        config.standard_core_policy = ConvergencePolicy(options["standard_core_policy"])
    if "modified_core_policy" in options:
        config.modified_core_policy = ConvergencePolicy(options["modified_core_policy"])
    return config


def run_headless(args) -> int:
    """Run a multi-step simulation described by a JSON file."""
    config_data = {}
    if args.config:
        try:
            config_data = load_config(args.config)
        except (OSError, ValueError) as e:
            logger.error("Error loading config %s: %s", args.config, e)
            return 1

    try:
        sim_config = build_sim_config(config_data.get("config", {}))
    except ValueError as e:
        logger.error("Invalid simulation config: %s", e)
        return 1

    engine = SimulationEngine(config=sim_config)
    recorder = None
    if args.record:
        recorder = DataRecorder(output_dir=args.record_dir, sample_interval_min=args.record_interval)
        recorder.start()

    def report(minute):
        if args.print_every and minute > 0 and minute % args.print_every == 0:
            state = engine.snapshot()
            print(f"Time: {state.time:4.0f} min | Tre: {state.t_re:.2f} C | "
                  f"Tsk: {state.t_sk:.2f} C | SWtotg: {state.sw_tot_g:.0f} g")

    runner = SimulationRunner(engine, recorder=recorder, step_callback=report)
    tag = config_data.get("tag", "run")
    steps = config_data.get("steps") or [{}]

    start_real = time.time()
    try:
        engine.set_parameters(config_data.get("parameters", {}))
        for index, step in enumerate(steps):
            engine.set_parameters(step)
            runner.run_simulation(f"{tag}_{index + 1}", from_start=(index == 0))
    except PHSError as e:
        logger.error("Simulation aborted: %s", e)
        return 1
    finally:
        if recorder is not None:
            recorder.stop()

    result = engine.result_snapshot()
    print(runner.run_log_frame().to_string(index=False))
    print(f"Final: t={result.time} min | Tre={result.t_re:.2f} C | SWtotg={result.sw_tot_g:.0f} g | "
          f"D_Tre={result.d_tre} | Dwl50={result.d_wl50} | Dwl95={result.d_wl95}")
    logger.info("Simulation completed in %.2fs real time.", time.time() - start_real)
    return 0


def run_iso_examples(args) -> int:
    """Run the ISO 7933 worked examples and print the comparison."""
    frame = run_examples(variants=args.variants)
    columns = ["name", "t_re", "target_t_re", "d_tre", "target_d_tre", "sw_tot_g",
               "target_sw_tot_g", "d_wl50", "target_d_wl50", "d_wl95", "target_d_wl95"]
    print(frame[columns].to_string(index=False))
    for field, metrics in compare_with_targets(frame).items():
        print(f"{field:>9}: MDPE {metrics['MDPE']:+.2f}% | MDAPE {metrics['MDAPE']:.2f}% | "
              f"max |err| {metrics['MaxAbsError']:.2f}")
    if args.csv:
        frame.to_csv(args.csv, index=False)
        print(f"Saved {args.csv}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="PHSim - ISO 7933 Predicted Heat Strain simulator")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    run_p = sub.add_parser("run", help="Run a simulation from a JSON configuration file")
    run_p.add_argument("--config", type=str, help="Path to JSON configuration file")
    run_p.add_argument("--print-every", type=int, default=30, help="Progress line interval in minutes (0 = off)")
    run_p.add_argument("--record", action="store_true", help="Enable CSV recording")
    run_p.add_argument("--record-dir", type=str, default="recordings", help="Output directory for recordings")
    run_p.add_argument("--record-interval", type=float, default=1.0, help="Sample interval in minutes for CSV")
    run_p.set_defaults(func=run_headless)

    ex_p = sub.add_parser("examples", help="Run the ISO 7933 worked examples")
    ex_p.add_argument("--variants", type=int, nargs="+", choices=[1, 2, 3, 4],
                      help="Model variants to run (default: all)")
    ex_p.add_argument("--csv", type=str, help="Save the comparison table to this CSV file")
    ex_p.set_defaults(func=run_iso_examples)

    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
