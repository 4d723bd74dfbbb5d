from django import template

from ..exports import format_answer

register = template.Library()


@register.filter(name="add_classes")
def add_classes(field, css):
    """Render a form field with extra CSS classes on its widget.

    Usage: {{ form.name|add_classes:"input w-full" }}
    """
    widget = field.field.widget
    classes = widget.attrs.get("class", "")
    merged = (classes + " " + css).strip()
    return field.as_widget(attrs={**widget.attrs, "class": merged})


@register.filter(name="answer_display")
def answer_display(value):
    return format_answer(value)


@register.filter(name="is_selected")
def is_selected(value, option):
    """True when ``option`` is the submitted value or one of them."""
    if isinstance(value, (list, tuple)):
        return option in value
    return str(value) == str(option)
