"""
CPReady WebSocket bridge

Runs next to the presentation layer (same phone/Pi) and:
1. Accepts accelerometer samples pushed by the sensor bridge process
2. Runs them through the cadence engine (filter -> magnitude -> push -> cadence)
3. Streams status, metronome ticks and mouth-to-mouth prompts to the UI
4. Takes start/stop/metronome/mouth-to-mouth commands from the UI

Everything, samples and metronome ticks included, runs on one asyncio loop,
so the session is never touched by two activities at once.

Usage:
    python ws_server.py
"""

import asyncio
import json
import logging
import math
import time

import websockets

from . import config
from .cadence import to_bpm
from .engine import Sample, SIGNAL_GUIDANCE
from .guidance import instruction_for
from .scheduler import AsyncioScheduler
from .session import CPRSession, SessionNotActiveError

logger = logging.getLogger(__name__)

# =============================================================================
# Global State
# =============================================================================

clients = set()
sensor_clients = set()

LAST_STATUS = {
    "type": "status",
    "active": False,
    "session_id": None,
    "connected": False,
    "t": None,
    "frequency_hz": 0.0,
    "bpm": 0,
    "guidance": None,
    "instruction": None,
    "push_count": 0,
    "pushes_until_reminder": config.MOUTH_TO_MOUTH_INTERVAL,
    "mouth_to_mouth": config.MOUTH_TO_MOUTH_ENABLED,
    "reminder_pending": False,
    "metronome": False,
    "discarded_samples": 0,
}


# =============================================================================
# Helpers
# =============================================================================

def json_safe(x):
    if x is None:
        return None
    if isinstance(x, float):
        return x if math.isfinite(x) else None
    if isinstance(x, (str, int, bool)):
        return x
    if isinstance(x, (list, tuple)):
        return [json_safe(v) for v in x]
    if isinstance(x, dict):
        return {str(k): json_safe(v) for k, v in x.items()}
    return str(x)


def is_command_message(msg: dict) -> bool:
    return msg.get("type") in ("cmd", "command")


def is_sample_message(msg: dict) -> bool:
    return msg.get("type") == "sample"


def sensor_connected() -> bool:
    return bool(sensor_clients)


# =============================================================================
# Sinks (metronome + mouth-to-mouth go out to every UI client)
# =============================================================================

class BroadcastSink:
    """Tick and reminder sink that forwards to all WebSocket clients."""

    def __init__(self):
        self.tone = None

    def _send(self, msg: dict):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # no loop, no clients
            logger.debug("Dropped %s outside the event loop", msg.get("type"))
            return
        loop.create_task(broadcast(msg))

    def configure_tone(self, waveform: int, frequency_hz: float, volume: float):
        self.tone = {"waveform": waveform, "frequency_hz": frequency_hz, "volume": volume}
        self._send({"type": "tone", **self.tone})

    def emit_tick(self):
        self._send({"type": "tick", "ts": round(time.time(), 3)})

    def on_mouth_to_mouth_due(self):
        self._send({
            "type": "mouth_to_mouth",
            "title": "Time for mouth-to-mouth!",
            "interval": session.engine.counters.interval,
        })


sink = BroadcastSink()
session = CPRSession(
    AsyncioScheduler(),
    tick_sink=sink,
    reminder_sink=sink,
    connected=sensor_connected,
)


# =============================================================================
# Command / sample handling (no sockets involved)
# =============================================================================

def apply_command(cpr: CPRSession, msg: dict) -> dict:
    """Run one UI command against a session and build the ack."""
    action = msg.get("action")

    if action == "start":
        was_active = cpr.active
        session_id = cpr.start_session()
        ack = {"type": "ack", "action": "start", "ok": True, "session_id": session_id}
        if was_active:
            ack["note"] = "restarted"
        return ack

    if action == "stop":
        if not cpr.active:
            return {"type": "ack", "action": "stop", "ok": True, "note": "already_inactive"}
        session_id = cpr.session_id
        hz = cpr.current_frequency_hz()
        cpr.stop_session()
        return {
            "type": "ack", "action": "stop", "ok": True,
            "session_id": session_id,
            "push_events": cpr.engine.detector.push_events,
            "frequency_hz": round(hz, 3),
            "bpm": round(to_bpm(hz)),
            "discarded_samples": cpr.discarded_samples,
        }

    if action == "metronome":
        if not cpr.active:
            return {"type": "ack", "action": "metronome", "ok": False, "error": "not_active"}
        enabled = msg.get("enabled")
        if enabled is None:
            running = cpr.toggle_metronome()
        elif enabled:
            cpr.start_metronome()
            running = True
        else:
            cpr.stop_metronome()
            running = False
        return {"type": "ack", "action": "metronome", "ok": True, "running": running}

    if action == "mouth_to_mouth":
        enabled = bool(msg.get("enabled", True))
        cpr.set_mouth_to_mouth(enabled)
        return {"type": "ack", "action": "mouth_to_mouth", "ok": True, "enabled": enabled}

    if action == "ack_reminder":
        acknowledged = cpr.acknowledge_reminder()
        return {
            "type": "ack", "action": "ack_reminder", "ok": True,
            "acknowledged": acknowledged,
            "pushes_until_reminder": cpr.pushes_until_reminder(),
        }

    if action == "status":
        return json_safe(cpr.status())

    return {"type": "ack", "action": action, "ok": False, "error": "unknown_action"}


def parse_sample(msg: dict) -> Sample:
    """Build a Sample from a sample message; raises ValueError if malformed."""
    try:
        t = msg["t"] if "t" in msg else msg["timestamp"]
        return Sample(float(msg["x"]), float(msg["y"]), float(msg["z"]), float(t))
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"bad sample: {e}")


def apply_sample(cpr: CPRSession, msg: dict):
    """
    Feed one sample message to the session.

    Returns:
        List of UI events to broadcast (guidance changes), or an error dict.
    """
    try:
        sample = parse_sample(msg)
    except ValueError as e:
        return {"type": "error", "where": "sample", "error": str(e)}

    try:
        signals = cpr.ingest_sample(sample)
    except SessionNotActiveError as e:
        return {"type": "error", "where": "sample", "error": str(e)}

    events = []
    for signal in signals:
        if signal.kind == SIGNAL_GUIDANCE:
            events.append({
                "type": "guidance",
                "t": signal.t,
                "guidance": signal.value.value,
                "instruction": instruction_for(signal.value),
            })
    return events


# =============================================================================
# WebSocket Broadcast
# =============================================================================

async def broadcast(msg: dict):
    if not clients:
        return
    data = json.dumps(json_safe(msg))
    dead = []
    for ws in list(clients):
        try:
            await ws.send(data)
        except Exception:
            dead.append(ws)
    for ws in dead:
        clients.discard(ws)


# =============================================================================
# Client Handler
# =============================================================================

async def handle_client(ws):
    clients.add(ws)
    print("Client connected")
    last_error_sent = 0.0

    try:
        await ws.send(json.dumps({"type": "config", "thresholds": config.thresholds()}))
        await ws.send(json.dumps(LAST_STATUS))

        async for raw in ws:
            try:
                msg = json.loads(raw)
            except ValueError:
                continue

            if not isinstance(msg, dict):
                continue

            if is_sample_message(msg):
                sensor_clients.add(ws)
                out = apply_sample(session, msg)
                if isinstance(out, dict):
                    # rate-limit errors back to the sensor bridge
                    now = time.time()
                    if now - last_error_sent > 1.0:
                        last_error_sent = now
                        await ws.send(json.dumps(out))
                else:
                    for event in out:
                        await broadcast(event)
                continue

            if is_command_message(msg):
                await ws.send(json.dumps(json_safe(apply_command(session, msg))))

    except websockets.exceptions.ConnectionClosed:
        pass
    finally:
        clients.discard(ws)
        sensor_clients.discard(ws)
        print("Client disconnected")


# =============================================================================
# Status Loop
# =============================================================================

async def status_loop():
    global LAST_STATUS

    while True:
        LAST_STATUS = json_safe(session.status())
        if session.active:
            await broadcast(LAST_STATUS)
        await asyncio.sleep(config.STATUS_INTERVAL_S)


# =============================================================================
# Main
# =============================================================================

async def main():
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print("CPReady Server")
    print(f"WebSocket: ws://{config.HOST}:{config.PORT}")
    print(f"Metronome: {60000.0 / config.METRONOME_PERIOD_MS:.0f} bpm")
    print(f"Mouth-to-mouth every {config.MOUTH_TO_MOUTH_INTERVAL} pushes")

    server = await websockets.serve(
        handle_client, config.HOST, config.PORT,
        ping_interval=20,
        ping_timeout=20
    )
    try:
        await status_loop()
    finally:
        session.stop_session()
        server.close()
        await server.wait_closed()


if __name__ == "__main__":
    asyncio.run(main())
