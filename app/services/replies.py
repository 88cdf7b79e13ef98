"""User-facing reply texts for the WhatsApp menu bot."""

from typing import Optional

from app.models.session import LoadListing, PostLoadDraft

MAIN_MENU = (
    "AGRIHAUL FREIGHT PLATFORM\n"
    "MAIN MENU - Choose an option:\n"
    "1 - Post a Load (Farmers)\n"
    "2 - Find Loads (Carriers)\n"
    "3 - Track Shipment\n"
    "4 - Rate Completed Job\n"
    "Reply with the number only (1, 2, 3, or 4)"
)

MSG_INVALID_MENU_SELECTION = "Invalid selection."

# Prompts shown when a flow starts.
MSG_POST_LOAD_START = "POST NEW LOAD\nWhat type of crop are you shipping?\nExamples: corn, soybeans, wheat, tomatoes"
MSG_FIND_LOADS_START = "FIND AVAILABLE LOADS\nPlease share your current location or type your city and state"
MSG_TRACK_START = "TRACK SHIPMENT\nEnter the Job ID to view status."
MSG_RATE_START = "RATE COMPLETED JOB\nEnter the Job ID you want to rate."

# Reprompts.
MSG_INVALID_CROP = "Please enter a valid crop type. Examples: corn, soybeans, wheat, tomatoes"
MSG_INVALID_WEIGHT = "Invalid weight format. Please provide examples like: 40000 lbs, 25 tons, 18000 pounds"
MSG_INVALID_PICKUP = "Please provide a pickup location such as 'Fresno, CA' or a full address."
MSG_INVALID_DROP = "Please provide a delivery location such as 'Chicago, IL' or a full address."
MSG_INVALID_PAYMENT = "Invalid payment amount. Enter a number like 2400 or $2400."
MSG_INVALID_EQUIPMENT = "Invalid selection. Reply with 1, 2, 3, or 4."
MSG_INVALID_SEARCH_LOCATION = "Please provide your city and state (e.g., Fresno, CA)."
MSG_INVALID_CARRIER_ID = "Invalid Carrier ID. Please re-enter your Carrier ID."
MSG_INVALID_JOB_ID = "Enter a valid Job ID."
MSG_INVALID_SCORE = "Invalid rating. Enter a number from 1 to 5."

MSG_LINK_CARRIER = (
    "ACCOUNT LINK REQUIRED\n"
    "To apply for loads, enter your AgriHaul Carrier ID.\n"
    "If you do not know it, please contact support.\n"
    "Reply with your Carrier ID (UUID format)."
)
MSG_LINK_SUCCESS = "Link successful. Returning to the Main Menu."

MSG_RATE_ASK_SCORE = "Enter an overall rating from 1 to 5."
MSG_RATE_ASK_COMMENT = "Enter an optional short comment. Or type 'skip' to submit without a comment."
MSG_RATE_SUBMITTED = "Thank you. Your rating has been submitted."

# Apologies after a failed backend call.
MSG_POST_LOAD_FAILED = "We could not post the load due to a system error. Returning to the Main Menu."
MSG_FIND_LOADS_FAILED = "We could not fetch loads right now. Returning to the Main Menu."
MSG_ACCEPT_FAILED = "We could not submit your application. Returning to the Main Menu."
MSG_TRACK_FAILED = "We could not find that job. Returning to the Main Menu."
MSG_RATE_FAILED = "We could not submit your rating. Returning to the Main Menu."
MSG_UNEXPECTED_ERROR = "An unexpected error occurred. Returning to the Main Menu."

EQUIPMENT_PROMPT = (
    "Select the required equipment:\n"
    "1 - Dry Van\n"
    "2 - Refrigerated Truck\n"
    "3 - Flatbed\n"
    "4 - Grain Hopper\n"
    "Reply with the number (1-4)"
)


def main_menu() -> str:
    return MAIN_MENU


def with_menu(text: str) -> str:
    """Append the main menu after a blank line."""
    return f"{text}\n\n{MAIN_MENU}"


def unexpected_error_reply() -> str:
    return with_menu(MSG_UNEXPECTED_ERROR)


def crop_accepted(crop: str) -> str:
    return (
        f"CROP TYPE: {crop.upper()}\n"
        "STEP 2 OF 6 - WEIGHT\n"
        "How much weight needs to be shipped?\n"
        "Examples: 40000 lbs, 25 tons, 18000 pounds"
    )


def weight_accepted(weight_display: str) -> str:
    return (
        f"WEIGHT: {weight_display}\n"
        "STEP 3 OF 6 - PICKUP LOCATION\n"
        "Where should the carrier pick up the load?\n"
        "Examples: 123 Farm Road, Fresno CA or just Fresno, CA"
    )


def pickup_accepted(pickup: str) -> str:
    return (
        f"PICKUP: {pickup}\n"
        "STEP 4 OF 6 - DELIVERY LOCATION\n"
        "Where should the load be delivered?\n"
        "Examples: Chicago, IL or 456 Warehouse St, Chicago IL"
    )


def drop_accepted(drop: str) -> str:
    return (
        f"DELIVERY: {drop}\n"
        "STEP 5 OF 6 - PAYMENT\n"
        "What is your budget for this shipment?\n"
        "Examples: 2400, $2400, 2400 dollars"
    )


def payment_accepted(payment_display: str) -> str:
    return f"PAYMENT: {payment_display}\nSTEP 6 OF 6 - EQUIPMENT TYPE\n{EQUIPMENT_PROMPT}"


def load_posted(job_id: str, draft: PostLoadDraft) -> str:
    return (
        "LOAD POSTED SUCCESSFULLY\n"
        f"JOB ID: {job_id}\n"
        f"CROP: {draft.crop}\n"
        f"WEIGHT: {draft.weight_display}\n"
        f"ROUTE: {draft.pickup} to {draft.drop}\n"
        f"PAYMENT: {draft.payment_display}\n"
        f"EQUIPMENT: {draft.equipment}\n"
        "Carriers will be notified. You will receive updates when carriers apply."
    )


def no_loads_found(location: str) -> str:
    return f"No loads found near {location}."


def loads_list(location: str, listings: list[LoadListing]) -> str:
    lines = [
        f"{index} - {item.crop}, {item.weight_display}, {item.route}, {item.price_display}, "
        f"Farmer Rating: {item.rating_display}"
        for index, item in enumerate(listings, start=1)
    ]
    return (
        f"AVAILABLE LOADS NEAR {location.upper()}\n"
        + "\n".join(lines)
        + f"\nReply with the load number (1-{len(listings)}) to apply"
    )


def invalid_load_selection(count: int) -> str:
    return f"Invalid selection. Reply with a number between 1 and {count}."


def application_submitted(job_id: str, listing: Optional[LoadListing]) -> str:
    details = ""
    if listing:
        details = (
            f"CROP: {listing.crop}\n"
            f"WEIGHT: {listing.weight_display}\n"
            f"ROUTE: {listing.route}\n"
            f"PAYMENT: {listing.price_display}\n"
            f"FARMER RATING: {listing.rating_display}\n"
        )
    return (
        "APPLICATION SUBMITTED\n"
        "LOAD DETAILS:\n"
        f"JOB ID: {job_id}\n"
        f"{details}"
        "The farmer has been notified of your application. You will be contacted if selected."
    )


def shipment_status(job_id: str, status: str, pickup: str, drop: str, eta: str) -> str:
    return f"SHIPMENT STATUS\nJOB ID: {job_id}\nSTATUS: {status}\nROUTE: {pickup} to {drop}\nETA: {eta}"
