"""SMS and WhatsApp provider configurations.

Each config is one variant of a tagged union keyed by ``provider`` and knows
how to deliver one text message to one phone number. ``send`` raises
``ProviderError`` (or an ``httpx.HTTPError``) when delivery fails; the
dispatcher turns those into ``Failed`` results.
"""

from typing import Annotated, Literal, Union

import httpx
from pydantic import BaseModel, Field

from feedesk.core.exceptions import ProviderError

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"
TEXTLOCAL_URL = "https://api.textlocal.in/send/"
MSG91_URL = "https://api.msg91.com/api/sendhttp.php"
TEXTBEE_URL = "https://api.textbee.dev/api/v1/gateway/send"
WHATSAPP_BUSINESS_URL = "https://graph.facebook.com/v18.0/{phone_number_id}/messages"
ULTRAMSG_URL = "https://api.ultramsg.com/{instance_id}/messages/chat"
CALLMEBOT_URL = "https://api.callmebot.com/whatsapp.php"


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _textlocal_error(result: dict) -> str:
    # entries are usually {"code": .., "message": ..} but plain strings occur too
    errors = result.get("errors")
    if not errors or not isinstance(errors, list):
        return "Unknown error"
    first = errors[0]
    if isinstance(first, dict):
        return str(first.get("message", "Unknown error"))
    return str(first)


# --- SMS ---
class TwilioSmsConfig(BaseModel):
    provider: Literal["twilio"] = "twilio"
    account_sid: str
    auth_token: str
    phone_number: str

    async def send(self, client: httpx.AsyncClient, mobile: str, message: str, country_code: str) -> None:
        response = await client.post(
            TWILIO_MESSAGES_URL.format(account_sid=self.account_sid),
            auth=(self.account_sid, self.auth_token),
            data={"From": self.phone_number, "To": f"+{country_code}{mobile}", "Body": message},
        )
        if response.is_error:
            raise ProviderError(f"Twilio API error: {response.status_code}")


class TextLocalConfig(BaseModel):
    provider: Literal["textlocal"] = "textlocal"
    api_key: str
    sender: str = "SCHOOL"

    async def send(self, client: httpx.AsyncClient, mobile: str, message: str, country_code: str) -> None:
        response = await client.post(
            TEXTLOCAL_URL,
            data={"apikey": self.api_key, "numbers": mobile, "message": message, "sender": self.sender},
        )
        result = _json_or_empty(response)
        if result.get("status") != "success":
            raise ProviderError(f"TextLocal error: {_textlocal_error(result)}")


class Msg91Config(BaseModel):
    provider: Literal["msg91"] = "msg91"
    api_key: str
    sender_id: str = "SCHOOL"
    route: str = "4"

    async def send(self, client: httpx.AsyncClient, mobile: str, message: str, country_code: str) -> None:
        response = await client.post(
            MSG91_URL,
            data={
                "authkey": self.api_key,
                "mobiles": mobile,
                "message": message,
                "sender": self.sender_id,
                "route": self.route,
            },
        )
        if "success" not in response.text:
            raise ProviderError(f"MSG91 error: {response.text}")


class TextBeeConfig(BaseModel):
    provider: Literal["textbee"] = "textbee"
    api_key: str
    device_id: str

    async def send(self, client: httpx.AsyncClient, mobile: str, message: str, country_code: str) -> None:
        response = await client.post(
            TEXTBEE_URL,
            headers={"x-api-key": self.api_key},
            json={"device": self.device_id, "phone": f"+{country_code}{mobile}", "message": message},
        )
        result = _json_or_empty(response)
        if response.is_error or not result.get("success"):
            reason = result.get("message") or result.get("error") or "Unknown error"
            raise ProviderError(f"TextBee error: {reason}")


SmsProviderConfig = Annotated[
    Union[TwilioSmsConfig, TextLocalConfig, Msg91Config, TextBeeConfig],
    Field(discriminator="provider"),
]


# --- WhatsApp ---
class TwilioWhatsAppConfig(BaseModel):
    provider: Literal["twilio"] = "twilio"
    account_sid: str
    auth_token: str
    phone_number: str

    async def send(self, client: httpx.AsyncClient, mobile: str, message: str, country_code: str) -> None:
        response = await client.post(
            TWILIO_MESSAGES_URL.format(account_sid=self.account_sid),
            auth=(self.account_sid, self.auth_token),
            data={
                "From": f"whatsapp:{self.phone_number}",
                "To": f"whatsapp:+{country_code}{mobile}",
                "Body": message,
            },
        )
        if response.is_error:
            raise ProviderError(f"Twilio WhatsApp API error: {response.status_code}")


class WhatsAppBusinessConfig(BaseModel):
    provider: Literal["business"] = "business"
    access_token: str
    phone_number_id: str

    async def send(self, client: httpx.AsyncClient, mobile: str, message: str, country_code: str) -> None:
        response = await client.post(
            WHATSAPP_BUSINESS_URL.format(phone_number_id=self.phone_number_id),
            headers={"Authorization": f"Bearer {self.access_token}"},
            json={
                "messaging_product": "whatsapp",
                "to": f"{country_code}{mobile}",
                "type": "text",
                "text": {"body": message},
            },
        )
        if response.is_error:
            raise ProviderError(f"WhatsApp Business API error: {response.status_code}")


class UltraMsgConfig(BaseModel):
    provider: Literal["ultramsg"] = "ultramsg"
    instance_id: str
    token: str

    async def send(self, client: httpx.AsyncClient, mobile: str, message: str, country_code: str) -> None:
        response = await client.post(
            ULTRAMSG_URL.format(instance_id=self.instance_id),
            data={"token": self.token, "to": f"{country_code}{mobile}", "body": message},
        )
        result = _json_or_empty(response)
        if response.is_error or result.get("sent") not in (True, "true"):
            raise ProviderError(f"UltraMsg error: {result.get('error') or 'Unknown error'}")


class CallMeBotConfig(BaseModel):
    provider: Literal["callmebot"] = "callmebot"
    api_key: str

    async def send(self, client: httpx.AsyncClient, mobile: str, message: str, country_code: str) -> None:
        response = await client.get(
            CALLMEBOT_URL,
            params={"phone": f"{country_code}{mobile}", "text": message, "apikey": self.api_key},
        )
        if response.is_error:
            raise ProviderError(f"CallMeBot error: {response.status_code}")


WhatsAppProviderConfig = Annotated[
    Union[TwilioWhatsAppConfig, WhatsAppBusinessConfig, UltraMsgConfig, CallMeBotConfig],
    Field(discriminator="provider"),
]
