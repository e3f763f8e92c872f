from jinja2 import Environment, select_autoescape

from .models import STAGES, Stage

_env = Environment(autoescape=select_autoescape(default=True, default_for_string=True))

PAGE = _env.from_string(
    """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Order {{ order_id }}</title>
  <style>
    body { font-family: sans-serif; max-width: 560px; margin: 40px auto; }
    .progress { display: flex; list-style: none; padding: 0; }
    .stage { flex: 1; text-align: center; padding: 8px; border-top: 4px solid #ccc; color: #888; }
    .stage.completed { border-color: #2e7d32; color: #2e7d32; font-weight: bold; }
  </style>
</head>
<body>
{% if record %}
  <h1>Order {{ order_id }}</h1>
  <p>Hi {{ record.name }}, here is the latest on your order.</p>
  <p class="current-status">Current status: <strong>{{ record.status }}</strong></p>
  <ol class="progress">
  {% for stage in stages %}
    <li class="stage{% if loop.index0 <= current %} completed{% endif %}">{{ stage }}</li>
  {% endfor %}
  </ol>
{% else %}
  <h1>Order {{ order_id }}</h1>
  <p>No tracking info found for this order.</p>
{% endif %}
</body>
</html>
"""
)


def render(order_id: str, store) -> str:
    """
    Tracking page for ``order_id``.

    Every stage up to and including the current status is marked completed.
    A status outside the stage sequence marks nothing; an unknown order gets
    a short "no tracking info" page.
    """
    record = store.get(order_id)
    current = Stage.index_of(record.status) if record else -1
    return PAGE.render(order_id=order_id, record=record, stages=STAGES, current=current)
