import argparse
import sys
import os
import logging

# Ensure we can import tools from project root
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from tools.lab.integration import IntegrationTestContext, free_udp_port

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("loopback_demo")

def main():
    parser = argparse.ArgumentParser(description="Run the lab server and N clients on one host")
    parser.add_argument("--ip", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=0, help="0 picks a free port")
    parser.add_argument("--clients", type=int, default=2)
    args = parser.parse_args()

    port = args.port or free_udp_port(args.ip)
    with IntegrationTestContext("loopback_demo") as ctx:
        server = ctx.start_server(args.ip, port)
        if not server.wait_for_output(rf"bound on port: {port}", timeout=10):
            logger.error(f"Server did not come up:\n{server.output()}")
            return 1

        failures = 0
        for i in range(args.clients):
            client = ctx.start_client(args.ip, port)
            code = client.wait(timeout=30)
            line = client.wait_for_output(r"^Server: ", timeout=1)
            logger.info(f"client #{i + 1} exit={code} reply={line.strip() if line else None}")
            if code != 0:
                failures += 1

        logger.info(f"Server log:\n{server.output()}")
        logger.info(f"Logs in {ctx.log_dir}")
        return 1 if failures else 0

if __name__ == "__main__":
    sys.exit(main())
