"""Request shapes, validated at the route boundary."""
import datetime
from typing import Annotated, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError as SchemaError,
    field_validator,
    model_validator,
)

from .errors import ValidationError
from .models import EntryKind


def _strip(value):
    return value.strip() if isinstance(value, str) else value


# Passwords are never stripped; names, categories and notes are.
Text = Annotated[str, BeforeValidator(_strip)]


def _number(value):
    # JSON true/false and numeric strings are not amounts.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError('must be a number')
    return value


Amount = Annotated[float, Field(gt=0, allow_inf_nan=False), BeforeValidator(_number)]


class Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class EmailRequest(Request):
    email: EmailStr

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class RegisterRequest(EmailRequest):
    name: Text = Field(min_length=1, max_length=100)
    # Length policy is enforced by AccountService so it can follow config.
    password: str = Field(validation_alias=AliasChoices('password', 'secret'))


class LoginRequest(EmailRequest):
    password: str = Field(validation_alias=AliasChoices('password', 'secret'))


class VerifyRequest(EmailRequest):
    code: Text = Field(min_length=1, max_length=12, validation_alias=AliasChoices('code', 'otp'))


class ResetPasswordRequest(VerifyRequest):
    new_password: str = Field(
        validation_alias=AliasChoices('new_password', 'newPassword', 'newSecret', 'new_secret'),
    )


class EntryCreate(Request):
    kind: EntryKind = Field(validation_alias=AliasChoices('kind', 'type'))
    amount: Amount
    category: Text = Field(min_length=1, max_length=50)
    date: datetime.date
    note: Optional[Text] = Field(default=None, max_length=1000,
                                 validation_alias=AliasChoices('note', 'description'))


class EntryUpdate(Request):
    kind: Optional[EntryKind] = Field(default=None, validation_alias=AliasChoices('kind', 'type'))
    amount: Optional[Amount] = None
    category: Optional[Text] = Field(default=None, min_length=1, max_length=50)
    date: Optional[datetime.date] = None
    note: Optional[Text] = Field(default=None, max_length=1000,
                                 validation_alias=AliasChoices('note', 'description'))

    @model_validator(mode='after')
    def required_fields_not_null(self):
        nulled = [
            name for name in ('kind', 'amount', 'category', 'date')
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if nulled:
            raise ValueError(f"{', '.join(nulled)} cannot be null")
        return self

    def changes(self):
        return self.model_dump(exclude_unset=True)


class EntryFilters(Request):
    kind: Optional[EntryKind] = Field(default=None, validation_alias=AliasChoices('kind', 'type'))
    category: Optional[Text] = None
    start: Optional[datetime.date] = Field(default=None, validation_alias=AliasChoices('start', 'from'))
    end: Optional[datetime.date] = Field(default=None, validation_alias=AliasChoices('end', 'to'))
    limit: int = Field(default=100, ge=1, le=100)
    offset: int = Field(default=0, ge=0)

    @model_validator(mode='after')
    def range_is_ordered(self):
        if self.start and self.end and self.start > self.end:
            raise ValueError('start must not be after end')
        return self


class BreakdownQuery(Request):
    kind: EntryKind = Field(default=EntryKind.EXPENSE, validation_alias=AliasChoices('kind', 'type'))


class MonthlyQuery(Request):
    months: int = Field(default=12, ge=1, le=120)


def parse(schema, data):
    """Validate ``data`` against ``schema`` or raise a 400 ValidationError."""
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    try:
        return schema.model_validate(data)
    except SchemaError as exc:
        errors = [
            {
                'field': '.'.join(str(part) for part in err['loc']) or None,
                'message': err['msg'],
            }
            for err in exc.errors()
        ]
        fields = sorted({e['field'] for e in errors if e['field']})
        message = f"Invalid or missing fields: {', '.join(fields)}" if fields else 'Invalid input'
        raise ValidationError(message, errors=errors) from exc
