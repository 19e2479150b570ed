"""
JSON renderer that wraps successful payloads as {"data": ...}.
Paginated responses are built as {"data", "meta"} by
common.pagination and flagged with `enveloped`; error payloads are
already shaped by common.exceptions. Both pass through untouched.
"""
from rest_framework.renderers import JSONRenderer


def is_enveloped(response):
    return getattr(response, "enveloped", False)


class EnvelopeJSONRenderer(JSONRenderer):
    def render(self, data, accepted_media_type=None, renderer_context=None):
        response = (renderer_context or {}).get("response")
        if data is not None and response is not None and response.status_code < 400:
            if not is_enveloped(response):
                data = {"data": data}
        return super().render(data, accepted_media_type, renderer_context)
