import csv
import logging
import os
import time
from dataclasses import asdict, fields
from typing import Optional

from .state import SimulationState

logger = logging.getLogger(__name__)


class DataRecorder:
    """
    Records per-minute simulation states to CSV.
    """
    def __init__(self, output_dir: str = ".", sample_interval_min: float = 1.0,
                 filename: Optional[str] = None):
        self.output_dir = output_dir
        self.filename = filename or f"phsim_log_{int(time.time())}.csv"
        self.file_path = os.path.join(output_dir, self.filename)
        self.file = None
        self.writer = None
        self.is_recording = False
        self.sample_interval_min = max(0.0, sample_interval_min)
        self._last_sample_time = None
        self.rows_written = 0

    def start(self):
        try:
            os.makedirs(self.output_dir, exist_ok=True)
            self.file = open(self.file_path, "w", newline="")
        except OSError as e:
            logger.error("Failed to start recording to %s: %s", self.file_path, e)
            self.is_recording = False
            return
        self.writer = csv.writer(self.file)
        self.is_recording = True
        self._last_sample_time = None
        self.rows_written = 0
        # Header based on SimulationState dataclass fields.
        self.writer.writerow([f.name for f in fields(SimulationState)])

    def log(self, state: SimulationState):
        if not self.is_recording or not self.writer:
            return

        if self.sample_interval_min > 0.0:
            now = state.time
            if self._last_sample_time is not None and (now - self._last_sample_time) < self.sample_interval_min:
                return
            self._last_sample_time = now

        self.writer.writerow(list(asdict(state).values()))
        self.rows_written += 1

    def stop(self):
        if self.file:
            self.file.close()
            self.file = None
            logger.info("Recorded %d rows to %s", self.rows_written, self.file_path)
        self.writer = None
        self.is_recording = False
