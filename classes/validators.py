import bleach
from flask import request
from pydantic import ValidationError as SchemaValidationError

from utils.errors import ValidationError

ALLOWED_TAGS = [
    "b", "i", "u", "strong", "em", "p", "br", "ul", "ol", "li", "a",
    "blockquote", "h1", "h2", "h3", "h4", "pre", "code", "img",
]
ALLOWED_ATTRIBUTES = {"a": ["href", "title", "target"], "img": ["src", "alt"]}

def sanitize_html(text):
    if not text:
        return text
    return bleach.clean(text, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES, strip=True)

def _describe(error):
    problems = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "body"
        problems.append(f"{field}: {item['msg']}")
    return "; ".join(problems)

def form_to_dict(form):
    """Flatten a multipart form, refusing fields sent more than once."""
    data = {}
    for key in form.keys():
        values = form.getlist(key)
        if len(values) > 1:
            raise ValidationError(f"{key}: expected a single value")
        data[key] = values[0]
    return data

def request_data():
    if request.mimetype in ("multipart/form-data", "application/x-www-form-urlencoded"):
        return form_to_dict(request.form)
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data

def parse_body(schema, data=None):
    """Validate the request body (or ``data``) against a pydantic schema."""
    if data is None:
        data = request_data()
    try:
        return schema.model_validate(data)
    except SchemaValidationError as e:
        raise ValidationError(_describe(e))

def parse_query(schema):
    return parse_body(schema, form_to_dict(request.args))
