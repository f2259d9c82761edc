"""Forms for the page classifier API.

The forms validate request parameters for single and batch
classification. URLs must be absolute http(s) URLs; topic limits are
clamped into the supported range instead of being rejected, and a
limit that is not a number falls back to the default.
"""

from __future__ import annotations

from typing import Any

from django import forms
from django.conf import settings

from .services import clamp_limit, is_valid_url


class ClassifyForm(forms.Form):
    """Parameters for classifying a single URL."""

    url = forms.CharField(
        max_length=2048,
        label='URL',
        help_text='The page to classify (e.g. https://example.com/article).',
        error_messages={'required': 'URL parameter is required'},
    )
    limit = forms.CharField(
        required=False,
        label='Topic limit',
        help_text='Number of topics to return (default 10, max 50).',
    )

    def clean_url(self) -> str:
        url = self.cleaned_data['url'].strip()
        if not is_valid_url(url):
            raise forms.ValidationError('Invalid URL provided')
        return url

    def clean_limit(self) -> int:
        return clamp_limit(self.cleaned_data.get('limit'))


class URLListField(forms.Field):
    """Accepts a list of URL strings, as decoded from a JSON body."""

    default_error_messages = {
        'required': 'URLs array is required',
        'invalid_list': 'URLs array is required',
        'invalid_item': 'Every URL must be a string',
    }

    def to_python(self, value: Any) -> list[str]:
        if value in self.empty_values:
            return []
        if not isinstance(value, (list, tuple)):
            raise forms.ValidationError(self.error_messages['invalid_list'], code='invalid_list')
        if not all(isinstance(item, str) for item in value):
            raise forms.ValidationError(self.error_messages['invalid_item'], code='invalid_item')
        return [item.strip() for item in value]


class BatchClassifyForm(forms.Form):
    """Parameters for classifying several URLs in one request."""

    urls = URLListField()
    limit = forms.CharField(required=False)

    def clean_urls(self) -> list[str]:
        urls = self.cleaned_data['urls']
        max_urls = getattr(settings, 'PAGECLASSIFIER_BATCH_MAX_URLS', 10)
        if len(urls) > max_urls:
            raise forms.ValidationError(f'Maximum {max_urls} URLs allowed per batch request')
        return urls

    def clean_limit(self) -> int:
        return clamp_limit(self.cleaned_data.get('limit'))
