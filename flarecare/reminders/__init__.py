"""Reminder engine (due selection, grouping, Web Push fan-out, sent markers).

The cron endpoints are stateless: every invocation re-reads the candidate set
from the store, and the only cross-run state is `appointments.reminder_sent_at`
plus the `push_subscriptions` table.
"""
