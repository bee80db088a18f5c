# main.py
import argparse  # For command line arguments
import cProfile
import io
import logging
import pstats
import sys
from typing import List, Optional

import psutil  # For memory monitoring

from asteroid_belt import AsteroidBelt
from config import config, ConfigurationError
from maneuver import ManeuverCommand, ManeuverOutcome, ManeuverResult


class BeltSimulation:
    """Runs an `AsteroidBelt` without a display.

    Rendering, camera and widget handling live outside this project; this
    driver stands in for the frame loop. Each iteration advances time by a
    fixed frame duration and calls `AsteroidBelt.step()`. Burns given on the
    command line are queued as `ManeuverCommand`s before the chosen step, the
    same way UI input would be.

    Attributes:
        belt (AsteroidBelt): The simulated belt.
        frame_ms (float): Wall-clock milliseconds represented by one step.
        running (bool): Flag indicating if the loop should continue.
        results (List[ManeuverResult]): Outcomes of every maneuver processed so far.
        process (psutil.Process): Current process, used for memory monitoring.
    """

    def __init__(self, count: Optional[int] = None, seed: Optional[int] = None,
                 frame_ms: Optional[float] = None):
        try:
            self.belt = AsteroidBelt(count=count, seed=seed)
        except ConfigurationError as e:
            logging.critical(f"Failed to initialize BeltSimulation due to ConfigurationError: {e}", exc_info=True)
            raise
        self.frame_ms = config.Time.DEFAULT_FRAME_MS if frame_ms is None else frame_ms
        self.running = True
        self.results: List[ManeuverResult] = []
        self.process = psutil.Process()

    def queue_burn(self, body_id: int, dvx: float, dvy: float):
        self.belt.submit_maneuver(ManeuverCommand(body_id, (dvx, dvy)))

    def _check_memory(self):
        memory_mb = self.process.memory_info().rss / (1024 * 1024)
        if memory_mb > config.Monitoring.MEMORY_USAGE_WARN_MB:
            logging.warning(f"Memory usage high: {memory_mb:.1f} MB "
                            f"(threshold {config.Monitoring.MEMORY_USAGE_WARN_MB} MB).")
        else:
            logging.debug(f"Memory usage: {memory_mb:.1f} MB")

    def run(self, steps: int, burns: Optional[List[ManeuverCommand]] = None, burn_step: int = 0) -> int:
        """Runs up to `steps` steps and returns how many were executed.

        Args:
            steps: Number of steps to run.
            burns: Commands queued right before step `burn_step`.
            burn_step: Step index at which `burns` are submitted.
        """
        executed = 0
        for step in range(steps):
            if not self.running:
                break
            if burns and step == burn_step:
                for command in burns:
                    self.belt.submit_maneuver(command)

            self.results.extend(self.belt.step(self.frame_ms))
            executed += 1

            if (step + 1) % config.Monitoring.SUMMARY_INTERVAL_STEPS == 0:
                logging.info(f"Step {step + 1}/{steps}: t={self.belt.time:.3f}, indexed={len(self.belt.index)}")
            if (step + 1) % config.Monitoring.MEMORY_CHECK_INTERVAL_STEPS == 0:
                self._check_memory()
        return executed

    def summary(self) -> dict:
        outcomes = {outcome.value: 0 for outcome in ManeuverOutcome}
        for result in self.results:
            outcomes[result.outcome.value] += 1
        return {
            'asteroids': len(self.belt),
            'steps': self.belt.step_count,
            'time': self.belt.time,
            'maneuvers': outcomes,
        }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the asteroid belt orbit simulation without a display.")
    parser.add_argument("--steps", type=int, default=600, help="Number of simulation steps to run.")
    parser.add_argument("--count", type=int, default=None,
                        help=f"Number of asteroids (default: {config.Belt.ASTEROID_COUNT}).")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for the asteroid population.")
    parser.add_argument("--frame-ms", type=float, default=None,
                        help="Milliseconds of wall-clock time represented by each step.")
    parser.add_argument("--burn", nargs=3, action="append", metavar=("ID", "DVX", "DVY"), default=[],
                        help="Queue a delta-v burn for an asteroid. May be repeated.")
    parser.add_argument("--burn-step", type=int, default=1, help="Step before which burns are queued.")
    parser.add_argument("--profile", action="store_true",
                        help="Enable profiling. Statistics will be saved to 'simulation_profile.prof'.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    burns = []
    for body_id, dvx, dvy in args.burn:
        try:
            burns.append(ManeuverCommand(int(body_id), (float(dvx), float(dvy))))
        except ValueError:
            logging.error(f"Invalid --burn arguments: {body_id} {dvx} {dvy}")
            return 2

    profiler = None
    if args.profile:
        profiler = cProfile.Profile()
        profiler.enable()
        logging.info("cProfile profiling enabled. Output will be saved to simulation_profile.prof upon completion.")

    exit_code = 0
    try:
        simulation = BeltSimulation(count=args.count, seed=args.seed, frame_ms=args.frame_ms)
        executed = simulation.run(args.steps, burns=burns, burn_step=args.burn_step)
        summary = simulation.summary()
        logging.info(f"Simulation finished after {executed} steps: {summary}")
        for result in simulation.results:
            logging.info(f"Maneuver on asteroid {result.command.body_id} {result.command.delta_v}: "
                         f"{result.outcome.value}")
    except ConfigurationError as e_config_main:
        logging.critical(f"Simulation could not be initialized due to a ConfigurationError: {e_config_main}",
                         exc_info=True)
        exit_code = 1
    except Exception as e_main:
        logging.critical(f"An unexpected critical error occurred in the simulation: {e_main}", exc_info=True)
        exit_code = 1
    finally:
        if profiler:
            profiler.disable()
            stats_file = "simulation_profile.prof"
            try:
                profiler.dump_stats(stats_file)
                s = io.StringIO()
                pstats.Stats(profiler, stream=s).sort_stats('cumulative').print_stats(20)
                logging.info(f"Profiling data saved to {stats_file}\n{s.getvalue()}")
            except OSError as e_profile_dump:
                logging.error(f"Failed to save profiling data to {stats_file}: {e_profile_dump}", exc_info=True)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
