from django import template

register = template.Library()

URGENCY_CLASSES = {
    "emergency": "badge-emergency",
    "urgent": "badge-urgent",
}

STATUS_CLASSES = {
    "completed": "badge-completed",
    "pending": "badge-pending",
    "cancelled": "badge-cancelled",
}


@register.filter(name="add_class")
def add_class(field, css):
    # merge with the widget's existing class
    attrs = field.field.widget.attrs.copy()
    current = attrs.get("class", "")
    attrs["class"] = (current + " " + css).strip()
    return field.as_widget(attrs=attrs)


@register.filter(name="urgency_class")
def urgency_class(urgency):
    return URGENCY_CLASSES.get(str(urgency or "").lower(), "badge-normal")


@register.filter(name="status_class")
def status_class(status):
    return STATUS_CLASSES.get(str(status or "").lower(), "badge-normal")

