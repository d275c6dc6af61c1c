#!/usr/bin/env python
"""
Submit several transcriptions at once and collect results through callbacks.
"""

import sys
import threading

from cinebot import Result, WhisperTranscriber
from cinebot.settings import configure_logging


def run_example(paths):
    configure_logging()
    remaining = threading.Semaphore(0)

    def on_complete(path):
        def handler(result: Result[str]):
            if result.is_success:
                print(f"{path}: {result.unwrap()[:80]}")
            else:
                print(f"{path}: failed ({result.error})")
            remaining.release()

        return handler

    with WhisperTranscriber() as transcriber:
        handles = [transcriber.submit_audio(path, on_complete(path)) for path in paths]
        for _ in handles:
            remaining.acquire()


if __name__ == "__main__":
    run_example(sys.argv[1:])
