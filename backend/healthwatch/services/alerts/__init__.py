"""Alert generators, deduplication and the evaluation pass.

The generators (thresholds, patterns, reminders) are pure functions over
readings; ``dedup.AlertSubmitter`` is the only writer of alerts.
"""
