from sqlalchemy.ext.asyncio import AsyncSession
from fabquote.models.support.activity_models import QuotationActivity
from fabquote.constants.activity_templates import ACTIVITY_TEMPLATES
from fabquote.constants.activity_codes import ActivityCode
from fabquote.core.identity import Principal


async def emit_activity(
    db: AsyncSession,
    *,
    principal: Principal,
    quotation_id: str | None,
    code: ActivityCode,
    **context,
):
    """Stage an audit row on the caller's session; it commits with the mutation."""
    template = ACTIVITY_TEMPLATES.get(code)
    if not template:
        raise ValueError(f"No activity template for code {code}")

    context.setdefault("actor_role", principal.role.value.capitalize())
    context.setdefault("actor_email", principal.label)
    context.setdefault("target_name", short_id(quotation_id))

    try:
        message = template.format(**context)
    except KeyError as e:
        raise ValueError(
            f"Missing activity context key: {e.args[0]} for {code}"
        )

    db.add(
        QuotationActivity(
            quotation_id=quotation_id,
            actor_id=principal.user_id,
            actor_role=principal.role.value,
            message=message,
        )
    )


def short_id(quotation_id: str | None) -> str:
    return f"#{quotation_id[:8]}" if quotation_id else "-"
