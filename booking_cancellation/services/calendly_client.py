from dataclasses import dataclass
import requests

@dataclass
class CalendlyConfig:
    api_base: str = "https://api.calendly.com"
    timeout: int = 15

class CalendlyError(RuntimeError):
    pass

class CalendlyClient:
    """Calls made on behalf of one partner, authenticated with that partner's token."""

    def __init__(self, cfg: CalendlyConfig, token: str):
        self.cfg = cfg
        self.token = token

    def cancel_scheduled_event(self, event_id: str, reason: str) -> dict:
        url = f"{self.cfg.api_base.rstrip('/')}/scheduled_events/{event_id}/cancellation"
        try:
            r = requests.post(
                url,
                json={"reason": reason},
                headers={"Authorization": f"Bearer {self.token}", "Content-Type": "application/json"},
                timeout=self.cfg.timeout,
            )
        except requests.RequestException as e:
            raise CalendlyError(f"Calendly request failed: {e}") from e
        if r.status_code >= 400:
            raise CalendlyError(f"Calendly error {r.status_code}: {r.text}")
        try:
            return r.json()
        except ValueError:
            return {}
