import logging
import time

from flask import Flask, jsonify, render_template_string
from flask_socketio import SocketIO

from .state import ENDED

logger = logging.getLogger("server.bulletin")

TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
<title>Election Results Board</title>
<script src="https://cdnjs.cloudflare.com/ajax/libs/socket.io/4.5.1/socket.io.min.js"></script>
<style>
body { font-family: 'Segoe UI', Arial, sans-serif; background: #f4f6fa; margin: 0; }
h1 { background: #2d5be3; color: #fff; margin: 0; padding: 24px 0; text-align: center; }
#board { max-width: 950px; margin: 32px auto; display: flex; flex-wrap: wrap; gap: 24px; justify-content: center; }
.card { background: #fff; border-radius: 12px; box-shadow: 0 4px 20px rgba(0,0,0,0.07); padding: 24px; min-width: 260px; max-width: 440px; flex: 1 1 300px; }
.card h2 { margin-top: 0; color: #2d5be3; font-size: 1.2em; border-bottom: 1px solid #e3e7ef; padding-bottom: 8px; }
.empty { font-family: 'Fira Mono', monospace; background: #f4f6fa; padding: 8px; border-radius: 6px; }
table { width: 100%; border-collapse: collapse; }
th, td { text-align: left; padding: 4px 6px; border-bottom: 1px solid #eef1f6; }
.total { font-size: 2em; font-weight: bold; color: #222; text-align: center; }
@media (max-width: 900px) { #board { flex-direction: column; align-items: center; } .card { max-width: 95vw; } }
</style>
</head>
<body>
<h1>Election Results Board</h1>
<div id="state-timer" style="text-align:center;font-size:1.3em;margin:18px 0 0 0;"></div>
<div id="board"></div>
<script>
let timerInterval = null;
let lastTimeLeft = 0;
let lastState = "";

function startCountdown(state, timeLeft) {
    lastTimeLeft = timeLeft;
    lastState = state;
    function updateTimer() {
        let hours = Math.floor(lastTimeLeft / 3600);
        let mins = Math.floor((lastTimeLeft % 3600) / 60);
        let secs = lastTimeLeft % 60;
        let clock = `${hours}:${mins.toString().padStart(2, "0")}:${secs.toString().padStart(2, "0")}`;
        let timerText = {
            "NOT_STARTED": `<span style="color:#2d5be3;font-weight:bold;">Voting opens in</span> ${clock}`,
            "OPEN": `<span style="color:#2d5be3;font-weight:bold;">Voting open</span> &mdash; closes in ${clock}`,
            "ENDED": `<span style="color:#c00;font-weight:bold;">Election ended</span>`
        }[lastState] || lastState;
        document.getElementById("state-timer").innerHTML = timerText;
        if (lastTimeLeft > 0 && lastState !== "ENDED") lastTimeLeft--;
    }
    if (timerInterval) clearInterval(timerInterval);
    updateTimer();
    timerInterval = setInterval(updateTimer, 1000);
}

function renderTable(title, rows, cols, emptyText) {
    let html = `<div class='card'><h2>${title}</h2>`;
    if (Array.isArray(rows) && rows.length > 0) {
        html += "<table><tr>" + cols.map(col => "<th>" + col[1] + "</th>").join("") + "</tr>";
        html += rows.map(row => "<tr>" + cols.map(col => "<td>" + row[col[0]] + "</td>").join("") + "</tr>").join("");
        html += "</table>";
    } else {
        html += `<div class='empty'>${emptyText}</div>`;
    }
    return html + "</div>";
}

function renderBoard(data) {
    if (typeof data.state !== "undefined" && typeof data.time_left !== "undefined") {
        startCountdown(data.state, data.time_left);
    }
    let html = "";
    html += renderTable("Political Parties", data.parties,
        [["id", "#"], ["name", "Name"], ["abbreviation", "Abbreviation"]], "No parties");
    html += renderTable("Voting Scores", data.scores,
        [["name", "Candidate"], ["party_abbreviation", "Party"], ["vote_count", "Votes"]], "No candidates");
    html += `<div class='card'><h2>Total Votes Cast</h2><div class='total'>${data.total_votes}</div></div>`;
    document.getElementById("board").innerHTML = html;
}

var socket = io();
socket.on('update', function(data) { renderBoard(data); });
fetch('/api/board').then(r => r.json()).then(renderBoard);
</script>
</body>
</html>
"""


def board_payload(election):
    return {
        "parties": [party.as_dict() for party in election.get_all_political_parties()],
        "scores": [score.as_dict() for score in election.get_voting_scores()],
        "total_votes": election.get_total_votes_cast(),
        "state": election.phase(),
        "time_left": int(election.time_left()),
        "start_time": election.start_time,
        "end_time": election.end_time,
        "events": len(election.events),
    }


def create_bulletin(election, async_mode="eventlet"):
    app = Flask(__name__)
    socketio = SocketIO(app, async_mode=async_mode)

    @app.route("/")
    def index():
        return render_template_string(TEMPLATE)

    @app.route("/api/board")
    def api_board():
        return jsonify(board_payload(election))

    def broadcast_board(event=None):
        socketio.emit('update', board_payload(election))

    election.events.subscribe(broadcast_board)
    app.extensions["broadcast_board"] = broadcast_board
    return app, socketio


def periodic_broadcast(app, election, interval=1):
    broadcast_board = app.extensions["broadcast_board"]
    while election.phase() != ENDED:
        broadcast_board()
        time.sleep(interval)
    broadcast_board()
    logger.info("Election ended, periodic broadcast stopped.")
