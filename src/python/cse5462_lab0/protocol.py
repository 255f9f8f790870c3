# Payloads are fixed; there is no header or framing on the wire.
GREETING = b"Hello, World!"
WELCOME = b"Welcome to CSE5462."

# Largest UDP payload the receive buffers accept.
MAX_DATAGRAM = 65535

RECV_TIMEOUT = 5.0
RETRY_INTERVAL = 1.0
