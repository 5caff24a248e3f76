from typing import Dict

from ..sms_client import SmsClient, format_result


async def generate_number(client: SmsClient, service: str, country: str, zipcode: str | None = None) -> str:
    """Rent a new number for a service in a country."""
    params: Dict[str, str] = {
        "action": "number",
        "service": service,
        "country": country,
    }
    # zip_pass is only meaningful together with a zipcode
    if zipcode:
        params["zip_pass"] = "1"
        params["zipcode"] = zipcode

    return format_result(await client.request(params))


async def get_sms(client: SmsClient, number: str, service: str) -> str:
    """Fetch messages received on a number for a service."""
    result = await client.request({"action": "sms", "number": number, "service": service})
    return format_result(result)


async def get_balance(client: SmsClient) -> str:
    return format_result(await client.request({"action": "balance"}))


async def get_active_numbers(client: SmsClient) -> str:
    return format_result(await client.request({"action": "active_short"}))
