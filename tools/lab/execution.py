import os
import sys
import subprocess
import threading
import datetime
import time
import re
import logging

logger = logging.getLogger("lab.execution")

class AppRunner:
    """
    Runs one lab program (client or server) as a subprocess.
    Output is teed into a log file and kept in memory for wait_for_output().
    """
    def __init__(self, name, cmd, log_dir, cwd=None, env=None):
        self.name = name
        self.cmd = cmd
        self.log_dir = log_dir
        self.cwd = cwd or os.getcwd()
        self.env = os.environ.copy()
        if env:
            self.env.update(env)

        self.proc = None
        self.log_file = None
        self.all_output = []
        self.output_pos = 0
        self.output_lock = threading.Lock()
        self._stop_event = threading.Event()
        self.reader_thread = None

        os.makedirs(self.log_dir, exist_ok=True)
        self.log_path = os.path.join(self.log_dir, f"{self.name}.log")

    def start(self):
        """Starts the process with stdout and stderr merged."""
        self.log_file = open(self.log_path, "w", encoding='utf-8', errors='ignore')
        self.log_file.write(f"=== LAB APP RUNNER: {self.name} ===\n")
        self.log_file.write(f"START_TIME: {datetime.datetime.now()}\n")
        self.log_file.write(f"COMMAND: {' '.join(self.cmd)}\n")
        self.log_file.write("="*40 + "\n\n")
        self.log_file.flush()

        try:
            self.proc = subprocess.Popen(
                self.cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                cwd=self.cwd,
                env=self.env,
                text=True,
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            msg = f"Failed to start process {self.name}: {e}"
            self.log_file.write(f"\n[ERROR] {msg}\n")
            self.log_file.close()
            raise RuntimeError(msg)

        self.reader_thread = threading.Thread(target=self._reader_loop, name=f"Reader-{self.name}")
        self.reader_thread.daemon = True
        self.reader_thread.start()

        logger.info(f"Started {self.name} (PID: {self.proc.pid})")
        return self

    def _reader_loop(self):
        proc = self.proc
        try:
            for line in iter(proc.stdout.readline, ''):
                if self._stop_event.is_set():
                    break
                self.log_file.write(line)
                self.log_file.flush()
                with self.output_lock:
                    self.all_output.append(line)
            proc.stdout.close()
        except (OSError, ValueError) as e:
            if not self._stop_event.is_set():
                logger.error(f"Reader loop error for {self.name}: {e}")

    def _scan(self, regex):
        # The cursor only moves on a match, so a failed wait hides nothing from later waits.
        with self.output_lock:
            local_pos = self.output_pos
            while local_pos < len(self.all_output):
                line = self.all_output[local_pos]
                local_pos += 1
                if regex.search(line):
                    self.output_pos = local_pos
                    return line
        return None

    def wait_for_output(self, pattern, timeout=10):
        """
        Waits for a regex in the output. Lines up to the match are consumed only when it is found.
        Returns the matching line or None on timeout / process exit.
        """
        regex = re.compile(pattern)
        deadline = time.time() + timeout
        while time.time() < deadline:
            line = self._scan(regex)
            if line is not None:
                return line
            if self.proc.poll() is not None:
                # Let the reader drain what the process wrote before exiting.
                if self.reader_thread:
                    self.reader_thread.join(timeout=1)
                line = self._scan(regex)
                if line is None:
                    logger.warning(f"Process {self.name} exited with code {self.proc.returncode} while waiting for '{pattern}'")
                return line
            time.sleep(0.05)

        logger.error(f"Timed out waiting for '{pattern}' in {self.name}")
        return None

    def wait(self, timeout=10):
        """Waits for the process to exit and returns its exit code (None if still running)."""
        try:
            code = self.proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return None
        if self.reader_thread:
            self.reader_thread.join(timeout=1)
        return code

    def output(self):
        with self.output_lock:
            return "".join(self.all_output)

    def count(self, pattern):
        regex = re.compile(pattern)
        with self.output_lock:
            return sum(1 for line in self.all_output if regex.search(line))

    def stop(self, timeout=5):
        if not self.proc:
            return
        self._stop_event.set()
        if self.proc.poll() is None:
            logger.info(f"Stopping {self.name}...")
            self.proc.terminate()
            try:
                self.proc.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                logger.warning(f"{self.name} did not terminate gracefully, killing...")
                self.proc.kill()
                self.proc.wait()
        if self.reader_thread:
            self.reader_thread.join(timeout=1)
        if self.log_file:
            self.log_file.write(f"\n--- Process Exited with code {self.proc.returncode} ---\n")
            self.log_file.close()
            self.log_file = None

    def is_running(self):
        return self.proc is not None and self.proc.poll() is None

    def get_return_code(self):
        if self.proc:
            return self.proc.poll()
        return None

def python_module_cmd(module, *args):
    """Command line running a lab module with the current interpreter, unbuffered."""
    return [sys.executable, "-u", "-m", module, *[str(a) for a in args]]
