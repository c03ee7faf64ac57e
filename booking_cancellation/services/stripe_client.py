from dataclasses import dataclass
import requests

@dataclass
class StripeConfig:
    secret_key: str
    api_base: str = "https://api.stripe.com"
    timeout: int = 20

class StripeError(RuntimeError):
    pass

# Checkout stores the PaymentIntent id; anything else (test placeholders, free bookings) was never charged.
CHARGE_REF_PREFIX = "pi_"

def is_genuine_charge_ref(charge_ref: str | None) -> bool:
    return bool(charge_ref) and charge_ref.startswith(CHARGE_REF_PREFIX) and len(charge_ref) > len(CHARGE_REF_PREFIX)

def _flatten(prefix: str, value: dict) -> dict:
    # Stripe takes form-encoded nested params: metadata[booking_id]=...
    return {f"{prefix}[{k}]": str(v) for k, v in value.items()}

class StripeClient:
    def __init__(self, cfg: StripeConfig):
        self.cfg = cfg

    def request(self, method: str, resource: str, data: dict | None = None, params: dict | None = None) -> dict:
        if not self.cfg.secret_key:
            raise StripeError("Stripe is not configured (missing STRIPE_SECRET_KEY)")
        url = f"{self.cfg.api_base.rstrip('/')}{resource}"
        try:
            r = requests.request(
                method,
                url,
                data=data,
                params=params,
                auth=(self.cfg.secret_key, ""),
                timeout=self.cfg.timeout,
            )
        except requests.RequestException as e:
            raise StripeError(f"Stripe request failed: {e}") from e

        try:
            out = r.json()
        except ValueError:
            out = {"raw": r.text}

        if r.status_code >= 400:
            message = (out.get("error") or {}).get("message") if isinstance(out, dict) else None
            raise StripeError(f"Stripe error {r.status_code}: {message or r.text}")
        return out

    def create_refund(self, charge_ref: str, reason: str = "requested_by_customer", metadata: dict | None = None) -> str:
        data = {"payment_intent": charge_ref, "reason": reason}
        data.update(_flatten("metadata", metadata or {}))
        resp = self.request("POST", "/v1/refunds", data=data)
        refund_id = resp.get("id")
        if not refund_id:
            raise StripeError("Stripe refund response has no id")
        return refund_id

    def get_charge_fee(self, charge_ref: str) -> int:
        """Processing fee (in cents) Stripe kept on the charge behind a PaymentIntent."""
        resp = self.request(
            "GET",
            f"/v1/payment_intents/{charge_ref}",
            params={"expand[]": "latest_charge.balance_transaction"},
        )
        charge = resp.get("latest_charge") or {}
        balance_tx = charge.get("balance_transaction") if isinstance(charge, dict) else None
        if not isinstance(balance_tx, dict):
            return 0
        return int(balance_tx.get("fee") or 0)
