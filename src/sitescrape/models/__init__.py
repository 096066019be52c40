"""Data models: records, targets, session policy and run states."""

from sitescrape.models.policy import BlocklistSource, ProxyConfig, SessionPolicy
from sitescrape.models.record import Record, coerce_record
from sitescrape.models.states import RunState
from sitescrape.models.target import ScrapeTarget, Target, url_from_target

__all__ = [
    "BlocklistSource",
    "ProxyConfig",
    "Record",
    "RunState",
    "ScrapeTarget",
    "SessionPolicy",
    "Target",
    "coerce_record",
    "url_from_target",
]
