import eventlet
eventlet.monkey_patch()
import logging
import socket
import ssl
import threading
from datetime import datetime

from .bulletin import create_bulletin, periodic_broadcast
from .config import Config
from .election import Election
from .handler import handle_client

logger = logging.getLogger("server.main")


def start_bulletin(app, socketio, config):
    socketio.run(app, host=config.bulletin_host, port=config.bulletin_port)


def serve(election, config):
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.load_cert_chain(certfile=config.cert, keyfile=config.key)
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM, 0) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((config.host, config.port))
        sock.listen(5)
        logger.info(f"Listening on tls://{config.host}:{config.port}")
        with context.wrap_socket(sock, server_side=True) as ssock:
            try:
                while True:
                    conn, addr = ssock.accept()
                    threading.Thread(target=handle_client, args=(conn, addr, election), daemon=True).start()
            except KeyboardInterrupt:
                logger.info("Shutting down server.")
            finally:
                logger.info("Socket closed.")


def main():
    config = Config.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(message)s"
    )
    election = Election(config.start_time, config.end_time, config.authority)
    logger.info(f"Election authority: {election.authority}")
    logger.info(f"Election starts at: {datetime.fromtimestamp(election.start_time):%Y-%m-%d %H:%M:%S}")
    logger.info(f"Election ends at: {datetime.fromtimestamp(election.end_time):%Y-%m-%d %H:%M:%S}")

    app, socketio = create_bulletin(election, async_mode=config.bulletin_async_mode)
    threading.Thread(target=periodic_broadcast, args=(app, election), daemon=True).start()
    threading.Thread(target=start_bulletin, args=(app, socketio, config), daemon=True).start()
    logger.info(f"Bulletin board running at http://localhost:{config.bulletin_port}")
    serve(election, config)


if __name__ == "__main__":
    main()
