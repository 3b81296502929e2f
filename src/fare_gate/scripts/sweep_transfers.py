# src/fare_gate/scripts/sweep_transfers.py
"""
Cron job to return overdue ticket transfers to their holders.

Equivalent to one tick of the background sweeper, for deployments that prefer
an external scheduler.
"""

import logging

from fare_gate.services.sweeper import sweep_once


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    reclaimed = sweep_once()
    print(f"Reclaimed {reclaimed} expired transfer(s)")


if __name__ == "__main__":
    main()
