import argparse
import logging

import requests

from election_client.prompt import format_table

logger = logging.getLogger("client.results")

SCORE_COLUMNS = [
    ("name", "Candidate"),
    ("party_name", "Party"),
    ("party_abbreviation", "Abbr"),
    ("vote_count", "Votes"),
]


def fetch_board(server_url, timeout=10):
    board_url = f"{server_url.rstrip('/')}/api/board"
    logger.info(f"--- Fetching bulletin data from {board_url} ---")
    response = requests.get(board_url, timeout=timeout)
    response.raise_for_status()
    return response.json()


def format_results(board):
    lines = [f"Election state: {board['state']}"]
    scores = board.get("scores", [])
    if scores:
        lines.append(format_table(scores, SCORE_COLUMNS))
    else:
        lines.append("No candidates registered.")
    lines.append(f"Total votes cast: {board['total_votes']}")
    return "\n".join(lines)


def mode_results(server_url):
    try:
        board = fetch_board(server_url)
    except requests.exceptions.RequestException as e:
        logger.error(f"Could not fetch data from server: {e}")
        return False
    except ValueError:
        logger.error("Could not parse JSON response from server.")
        return False
    print("\n--- VOTING RESULTS ---")
    print(format_results(board))
    return True


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s"
    )
    parser = argparse.ArgumentParser(description="Election results reader")
    parser.add_argument("--server-url", default="http://localhost:5000",
                        help="URL of the results board (e.g., http://localhost:5000).")
    args = parser.parse_args()
    raise SystemExit(0 if mode_results(args.server_url) else 1)


if __name__ == "__main__":
    main()
