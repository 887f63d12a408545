"""
URL builders for the three upstream endpoint families
"""

from urllib.parse import quote

from config.settings import RelayConfig

ACCOUNTS_PATH = "/users/current/accounts"


def _segment(value: str) -> str:
    return quote(str(value), safe=":")


class Endpoints:
    """Provisioning, trading-session (client) and statistics (metastats) URLs"""

    def __init__(self, config: RelayConfig):
        self.provisioning = config.provisioning_url
        self.client = config.client_url
        self.metastats = config.metastats_url

    # Provisioning
    def accounts(self) -> str:
        return f"{self.provisioning}{ACCOUNTS_PATH}"

    def account(self, account_id: str) -> str:
        return f"{self.provisioning}{ACCOUNTS_PATH}/{_segment(account_id)}"

    def enable_metastats(self, account_id: str) -> str:
        return f"{self.account(account_id)}/enable-metastats-api"

    # Trading session
    def account_information(self, account_id: str) -> str:
        return f"{self.client}{ACCOUNTS_PATH}/{_segment(account_id)}/account-information"

    def history_deals(self, account_id: str, start: str, end: str) -> str:
        return (
            f"{self.client}{ACCOUNTS_PATH}/{_segment(account_id)}"
            f"/history-deals/time/{_segment(start)}/{_segment(end)}"
        )

    # Statistics
    def metrics(self, account_id: str) -> str:
        return f"{self.metastats}{ACCOUNTS_PATH}/{_segment(account_id)}/metrics"

    def historical_trades(self, account_id: str, start: str, end: str) -> str:
        return (
            f"{self.metastats}{ACCOUNTS_PATH}/{_segment(account_id)}"
            f"/historical-trades/time/{_segment(start)}/{_segment(end)}?updateHistory=true"
        )

    def daily_growth(self, account_id: str) -> str:
        return f"{self.metastats}{ACCOUNTS_PATH}/{_segment(account_id)}/daily-growth"
