from prometheus_client import Counter


cron_runs_total = Counter(
    "reminder_cron_runs_total",
    "Cron invocations by kind and outcome",
    ["kind", "outcome"],
)

push_delivered_total = Counter(
    "reminder_push_delivered_total",
    "Total successful push sends",
)

push_failed_total = Counter(
    "reminder_push_failed_total",
    "Total failed push sends by outcome (gone/failed)",
    ["outcome"],
)

subscriptions_removed_total = Counter(
    "reminder_subscriptions_removed_total",
    "Push subscriptions deleted after a 404/410 from the push service",
)

reminders_marked_total = Counter(
    "reminder_appointments_marked_total",
    "Appointments whose reminder_sent_at was written",
)
