import os
import socket
import tempfile

from .execution import AppRunner, python_module_cmd

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
SRC_DIR = os.path.join(PROJECT_ROOT, "src", "python")

CLIENT_MODULE = "cse5462_lab0.client"
SERVER_MODULE = "cse5462_lab0.server"

def free_udp_port(ip="127.0.0.1"):
    """Asks the OS for an unused UDP port on ip."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        s.bind((ip, 0))
        return s.getsockname()[1]

class IntegrationTestContext:
    """
    Tracks the client/server processes of one integration test and their logs.
    Stops everything on exit.
    """
    def __init__(self, name, base_log_dir=None):
        self.name = name
        self.base_log_dir = base_log_dir or os.environ.get("LAB_LOG_DIR") or os.path.join(tempfile.gettempdir(), "lab0-logs")
        self.log_dir = os.path.join(self.base_log_dir, name)
        os.makedirs(self.log_dir, exist_ok=True)
        self.runners = []
        self._seq = 0

    def _env(self, extra=None):
        path = os.environ.get("PYTHONPATH")
        env = {"PYTHONPATH": SRC_DIR + (os.pathsep + path if path else "")}
        if extra:
            env.update(extra)
        return env

    def add_runner(self, name, cmd, env=None):
        runner = AppRunner(name, cmd, self.log_dir, cwd=PROJECT_ROOT, env=self._env(env))
        self.runners.append(runner)
        return runner

    def _unique(self, name):
        self._seq += 1
        return f"{name}_{self._seq}"

    def start_server(self, ip, port, *extra, env=None):
        return self.add_runner(self._unique("server"), python_module_cmd(SERVER_MODULE, ip, port, *extra), env=env).start()

    def start_client(self, ip, port, *extra, env=None):
        return self.add_runner(self._unique("client"), python_module_cmd(CLIENT_MODULE, ip, port, *extra), env=env).start()

    def get_runner(self, name):
        for r in self.runners:
            if r.name == name:
                return r
        return None

    def cleanup(self):
        for r in self.runners:
            r.stop()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
