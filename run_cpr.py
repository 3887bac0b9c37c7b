"""
Run the CPReady engine offline.

Feeds a synthetic compression trace (or a recorded CSV/JSONL stream) through
a CPR session on a virtual clock, so metronome ticks and mouth-to-mouth
prompts happen in sensor time.

Usage:
    python run_cpr.py --bpm 110 --seconds 30
    python run_cpr.py --recording session.csv --metronome
"""

import argparse
import logging

from cpready import CPRSession, ManualScheduler, instruction_for, to_bpm
from cpready import config
from cpready.synthetic import compression_trace, load_recording


class PrintSink:
    def __init__(self, session_ref):
        self.session_ref = session_ref
        self.ticks = 0
        self.reminders = 0

    def emit_tick(self):
        self.ticks += 1

    def on_mouth_to_mouth_due(self):
        self.reminders += 1
        print("  >> Time for mouth-to-mouth!")
        # nobody to press the button offline: resume right away
        self.session_ref[0].acknowledge_reminder()


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument('--bpm', type=float, default=110.0)
    parser.add_argument('--seconds', type=float, default=30.0)
    parser.add_argument('--noise', type=float, default=0.3)
    parser.add_argument('--seed', type=int, default=0)
    parser.add_argument('--recording', type=str, default=None)
    parser.add_argument('--alpha', type=float, default=config.SMOOTHING_ALPHA)
    parser.add_argument('--metronome', action='store_true')
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO))

    if args.recording:
        samples = load_recording(args.recording)
    else:
        samples = compression_trace(
            args.bpm, args.seconds,
            noise_std=args.noise,
            seed=args.seed,
        )
    if not samples:
        print("No samples.")
        return

    clock = ManualScheduler(start=samples[0].timestamp)
    session_ref = [None]
    sink = PrintSink(session_ref)
    session = CPRSession(
        clock,
        tick_sink=sink,
        reminder_sink=sink,
        alpha=args.alpha,
        metronome_on_start=args.metronome,
    )
    session_ref[0] = session

    print("\n--- CPREADY (OFFLINE) ---")
    print(f"{len(samples)} samples, {samples[-1].timestamp - samples[0].timestamp:.1f} s\n")

    session.start_session()
    last_print = None

    try:
        for sample in samples:
            clock.advance_to(sample.timestamp)
            session.ingest_sample(sample)

            if last_print is None or sample.timestamp - last_print >= 0.2:  # 5x/sec
                guidance = session.current_guidance()
                print(
                    f"t={sample.timestamp:6.2f}  bpm={to_bpm(session.current_frequency_hz()):5.1f}  "
                    f"next_m2m={session.pushes_until_reminder():2d}  {instruction_for(guidance)}"
                )
                last_print = sample.timestamp
    finally:
        status = session.status()
        session.stop_session()

    print("\n--- STOP ---")
    print("Push events:", status["push_events"])
    print("Final bpm:", status["bpm"])
    print("Guidance:", status["guidance"])
    print("Discarded samples:", status["discarded_samples"])
    print("Metronome ticks:", sink.ticks)
    print("Mouth-to-mouth prompts:", sink.reminders)


if __name__ == "__main__":
    main()
