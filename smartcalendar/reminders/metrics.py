from prometheus_client import Counter


reminder_ticks_total = Counter(
    "reminder_dispatch_ticks_total",
    "Total dispatch loop ticks",
)

reminders_sent_total = Counter(
    "reminders_sent_total",
    "Total reminder emails sent",
)

reminders_skipped_total = Counter(
    "reminders_skipped_total",
    "Total due reminders skipped",
    ["reason"],
)

reminders_failed_total = Counter(
    "reminders_failed_total",
    "Total reminder emails that failed to send",
)

reminder_commit_failures_total = Counter(
    "reminder_commit_failures_total",
    "Total ticks whose sent flags could not be persisted",
)
