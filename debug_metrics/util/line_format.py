import json

from jinja2 import Environment

env = Environment(keep_trailing_newline=True)


def snapshot_repr(snapshot):
    """Render a str -> str map as ``{"k": "v", ...}`` with sorted keys."""
    return json.dumps(snapshot, sort_keys=True, ensure_ascii=False)


env.filters['snapshot_repr'] = snapshot_repr

EVENT_LINE_TEMPLATE = (
    "{{ key }}{% if cause is not none %} (caused by {{ cause }}){% endif %}"
    ": {{ value }} :: {{ snapshot | snapshot_repr }}\n"
)

_event_line = env.from_string(EVENT_LINE_TEMPLATE)


def event_line(event):
    """Format one event as a drop-flush output line."""
    return _event_line.render(
        key=event.key,
        cause=event.cause,
        value=event.display_value,
        snapshot=event.snapshot(),
    )
