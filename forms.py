from flask_wtf import FlaskForm
from wtforms import FieldList, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, StopValidation, ValidationError


def text_only(form, field):
    if field.data is not None and not isinstance(field.data, str):
        raise StopValidation("Must be a string")


def tag_name_length(form, field):
    if not field.data or len(field.data) > 50:
        raise ValidationError("Tag name must be between 1 and 50 characters")


class CreateEntryForm(FlaskForm):
    """Payload of a new journal entry."""

    class Meta:
        csrf = False

    content = TextAreaField(
        "Content",
        validators=[
            text_only,
            DataRequired(message="Content cannot be empty"),
            Length(
                min=10,
                max=10000,
                message="Content must be between 10 and 10000 characters",
            ),
        ],
    )


class UpdateTagsForm(FlaskForm):
    """Payload replacing the tags of an entry."""

    class Meta:
        csrf = False

    tag_names = FieldList(
        StringField("Tag", validators=[text_only, tag_name_length]),
        validators=[Length(min=1, max=20, message="Must have between 1 and 20 tags")],
    )


def form_errors(form):
    """Flatten WTForms errors into a single message."""
    messages = []
    for name, errors in form.errors.items():
        for error in errors:
            # FieldList reports nested lists per entry
            if isinstance(error, list):
                messages.extend(error)
            else:
                messages.append(error)
    return "; ".join(str(m) for m in messages if m)
