import socket
import sys

from pow_worker.protocol import parse_report

HOST = "127.0.0.1"
PORT = 3000


def main():
    port = int(sys.argv[1]) if len(sys.argv) > 1 else PORT
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as srv:
        srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        srv.bind((HOST, port))
        srv.listen(16)
        print(f"[NET] core manager stub listening on {HOST}:{port}")
        while True:
            conn, addr = srv.accept()
            with conn:
                buf = b""
                while True:
                    chunk = conn.recv(4096)
                    if not chunk:
                        break
                    buf += chunk
            try:
                msg = parse_report(buf)
                print(f"[<-] {addr[0]}:{addr[1]} {msg}")
            except ValueError as e:
                print(f"[!!] {addr[0]}:{addr[1]} bad report {buf[:200]!r}: {e}")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pass
