"""
Demo: report CPU load and process counts from two producer threads.

Run against stdout:
    python examples/cpu_monitor.py --oml-domain lab --oml-id node1 --oml-collect file:-

Or against a collection server:
    python examples/cpu_monitor.py --oml-domain lab --oml-id node1 --oml-collect tcp:localhost:3003
"""

import argparse
import os
import threading
import time

from loguru import logger

import oml_client
from oml_client import MeasurementPoint


class CPU(MeasurementPoint, name="cpu"):
    pass


CPU.param("load1", type="double")
CPU.param("load5", type="double")


class Procs(MeasurementPoint, name="procs"):
    pass


Procs.param("host")
Procs.param("count", type="int32")


def sample_cpu(stop: threading.Event, interval: float) -> None:
    while not stop.is_set():
        load1, load5, _ = os.getloadavg()
        CPU.inject(load1, load5)
        stop.wait(interval)


def sample_procs(stop: threading.Event, interval: float) -> None:
    host = os.uname().nodename
    while not stop.is_set():
        count = sum(1 for p in os.listdir("/proc") if p.isdigit()) if os.path.isdir("/proc") else 0
        Procs.inject(host, count)
        stop.wait(interval)


def main():
    parser = argparse.ArgumentParser(description="OML CPU monitor demo")
    parser.add_argument("--duration", type=float, default=5.0, help="Seconds to run")
    parser.add_argument("--interval", type=float, default=0.5, help="Sampling interval")

    args, _ = oml_client.init(parser=parser, app_name="cpu_monitor")

    stop = threading.Event()
    workers = [
        threading.Thread(target=sample_cpu, args=(stop, args.interval)),
        threading.Thread(target=sample_procs, args=(stop, args.interval * 2)),
    ]
    for w in workers:
        w.start()

    logger.info(f"Sampling for {args.duration:.1f}s")
    time.sleep(args.duration)
    stop.set()
    for w in workers:
        w.join()

    oml_client.close()
    logger.info("All measurements sent")


if __name__ == "__main__":
    main()
