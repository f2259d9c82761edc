"""Database models for the page classifier app.

Every classification request is stored as a ``ClassificationRun`` so
recent results can be reviewed from the admin or the history endpoint.
"""

from __future__ import annotations

from django.db import models


class ClassificationRun(models.Model):
    """Outcome of classifying a single URL."""

    url = models.URLField(max_length=2048)
    success = models.BooleanField(default=False)
    page_title = models.CharField(max_length=500, blank=True)
    error = models.TextField(blank=True)
    topics = models.JSONField(default=list, blank=True)
    topic_limit = models.PositiveSmallIntegerField(default=10)
    total_time = models.FloatField(default=0.0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:  # pragma: no cover - convenience display
        status = 'ok' if self.success else 'failed'
        return f"{self.url} · {status} · {self.created_at:%Y-%m-%d %H:%M}"
