# jobs/inventory_alerts_job.py

from core.scheduler import run_inventory_alerts


def run():
    """
    CLI entry point for the daily inventory reminders.
    This is what an external cron (platform cron job) will call.
    """
    summary = run_inventory_alerts()
    if "error" in summary:
        raise RuntimeError(summary["error"])
    return summary


if __name__ == "__main__":
    run()
