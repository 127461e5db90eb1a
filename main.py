# main.py
import os
import io
import time
import logging
import cProfile
import pstats
import argparse  # For command line arguments (profiling, frame count, start instant)
from datetime import datetime
from typing import Optional

import psutil  # For memory monitoring

from config import config, ConfigurationError
from solarsystem import SolarSystem
from time_controller import SimulationClock, describe_speed


class OrrerySimulation:
    """Runs the orrery engine headlessly, frame by frame.

    Couples a `SimulationClock` (simulated instant, speed multiplier, pause flag)
    with a `SolarSystem` (bodies and their per-frame world transforms). Each frame
    the clock is ticked with a fixed wall-time step and the resulting instant and
    simulated delta are fed to `SolarSystem.update()`. Positions of the bodies in
    `config.Debug.LOG_ORBIT_BODY_IDS` are logged periodically, and resident memory
    is sampled through `psutil`.

    Attributes:
        clock (SimulationClock): Source of simulated time.
        solar_system (SolarSystem): The engine being driven.
        running (bool): Cleared to stop the frame loop after an unrecoverable error.
        frame_count (int): Frames completed so far.
        process (psutil.Process): Handle on the current process for memory checks.
    """

    def __init__(self, start_instant: Optional[datetime] = None, speed_step: Optional[int] = None):
        """Builds the clock and the solar system.

        Raises:
            ConfigurationError: If the catalogue is structurally invalid.
        """
        try:
            self.clock = SimulationClock(start_instant, speed_step)
            self.solar_system = SolarSystem(start_instant=self.clock.current_time)
        except ConfigurationError as e:
            logging.critical(f"Failed to initialize OrrerySimulation due to ConfigurationError: {e}", exc_info=True)
            raise

        self.running = True
        self.frame_count = 0
        self.process = psutil.Process(os.getpid())
        logging.info(
            f"OrrerySimulation initialized at {self.clock.current_time.isoformat()} "
            f"with speed {describe_speed(self.clock.speed)}."
        )

    def step(self, wall_delta_seconds: float) -> float:
        """Advances one frame. Returns the elapsed simulated seconds."""
        sim_delta_seconds = self.clock.tick(wall_delta_seconds)
        self.solar_system.update(self.clock.current_time, sim_delta_seconds)
        self.frame_count += 1
        return sim_delta_seconds

    def log_positions(self):
        for body_id in config.Debug.LOG_ORBIT_BODY_IDS:
            body = self.solar_system.bodies_by_id.get(body_id)
            if body is None:
                logging.warning(f"Cannot log position of unknown body '{body_id}'.")
                continue
            x, y, z = body.position
            logging.info(
                f"Frame {self.frame_count} [{self.clock.current_time.isoformat()}] {body.definition.name}: "
                f"pos=({x:.3f}, {y:.3f}, {z:.3f}) rot={body.rotation:.4f} rad"
            )

    def check_memory(self):
        try:
            memory_mb = self.process.memory_info().rss / (1024 * 1024)
            if memory_mb > config.Monitoring.MEMORY_USAGE_WARN_MB:
                logging.warning(f"High memory usage: {memory_mb:.2f} MB at frame {self.frame_count}")
            else:
                logging.debug(f"Memory usage: {memory_mb:.2f} MB at frame {self.frame_count}")
        except psutil.Error as e_psutil:
            logging.error(f"Could not retrieve memory usage: {e_psutil}", exc_info=True)

    def run(self, num_frames: int, fps: float, realtime: bool = False) -> int:
        """Runs up to `num_frames` frames at a fixed step of 1/fps wall seconds.

        With `realtime` the loop sleeps between frames; otherwise it runs as fast
        as possible. Returns the number of frames completed.
        """
        wall_delta_seconds = 1.0 / fps
        logging.info(f"Running {num_frames} frames at {fps} fps (realtime={realtime}).")

        for _ in range(num_frames):
            if not self.running:
                break
            try:
                self.step(wall_delta_seconds)

                if self.frame_count % config.Debug.LOG_ORBIT_INTERVAL_FRAMES == 0:
                    self.log_positions()
                if self.frame_count % config.Monitoring.MEMORY_CHECK_INTERVAL_FRAMES == 0:
                    self.check_memory()
            except Exception:
                # main() logs the failure.
                self.running = False
                raise

            if realtime:
                time.sleep(wall_delta_seconds)

        logging.info(f"Run finished after {self.frame_count} frames at {self.clock.current_time.isoformat()}.")
        return self.frame_count


def parse_instant(value: str) -> datetime:
    """argparse type for ISO-8601 instants; naive values are read as UTC."""
    if value[-1:] in ("Z", "z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid ISO-8601 instant '{value}': {e}")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the orrery engine headlessly and log body positions.")
    parser.add_argument(
        "--profile",
        action="store_true",
        help=f"Enable profiling. Statistics will be saved to '{config.Driver.PROFILE_OUTPUT}'."
    )
    parser.add_argument("--frames", type=int, default=config.Driver.DEFAULT_FRAMES, help="Number of frames to run.")
    parser.add_argument("--fps", type=float, default=config.Driver.FPS, help="Frames per wall-clock second.")
    parser.add_argument("--start", type=parse_instant, default=None,
                        help="Start instant (ISO-8601, UTC if no offset). Defaults to now.")
    parser.add_argument("--speed-step", type=int, default=None,
                        help=f"Index into the speed table (0-{len(config.Time.SPEED_STEPS) - 1}).")
    parser.add_argument("--realtime", action="store_true", help="Sleep between frames to run at wall-clock pace.")
    return parser


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)

    profiler = None
    if args.profile:
        profiler = cProfile.Profile()
        profiler.enable()
        logging.info(f"cProfile profiling enabled. Output will be saved to {config.Driver.PROFILE_OUTPUT} upon completion.")

    exit_code = 0
    try:
        logging.info("Initializing OrrerySimulation...")
        simulation = OrrerySimulation(start_instant=args.start, speed_step=args.speed_step)
        simulation.run(args.frames, args.fps, realtime=args.realtime)
    except ConfigurationError as e_config_main:
        logging.critical(f"OrrerySimulation could not be initialized due to a ConfigurationError: {e_config_main}", exc_info=True)
        exit_code = 2
    except Exception as e_main:
        logging.critical(f"An unexpected critical error occurred in the main execution block: {e_main}", exc_info=True)
        exit_code = 1
    finally:
        if profiler:
            profiler.disable()
            stats_file = config.Driver.PROFILE_OUTPUT
            try:
                profiler.dump_stats(stats_file)
                logging.info(f"Profiling data successfully saved to {stats_file}")
                summary = io.StringIO()
                pstats.Stats(profiler, stream=summary).sort_stats('cumulative').print_stats(20)
                logging.info(f"\n--- Top 20 Profiled Functions (Cumulative Time) ---\n{summary.getvalue()}")
            except OSError as e_profile_dump:
                logging.error(f"Failed to save profiling data to {stats_file}: {e_profile_dump}", exc_info=True)

        logging.info("Orrery simulation terminated.")
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
