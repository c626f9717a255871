from fabquote.constants.activity_codes import ActivityCode


ACTIVITY_TEMPLATES = {
    ActivityCode.SUBMIT_QUOTATION:
        "{actor_role} ({actor_email}) submitted {quotation_type} quotation {target_name}",

    ActivityCode.UPDATE_QUOTATION:
        "{actor_role} ({actor_email}) updated quotation {target_name}: {changes}",

    ActivityCode.CONFIRM_PAYMENT:
        "{actor_role} ({actor_email}) paid quotation {target_name} with payment {payment_reference}",

    ActivityCode.CANCEL_QUOTATION:
        "{actor_role} ({actor_email}) cancelled quotation {target_name}",
}
