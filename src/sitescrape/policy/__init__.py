"""Rate and content policy consulted on every page load.

``throttle`` enforces a minimum interval between navigations; ``content_filter``
blocks images and ad/tracker requests using Adblock Plus lists downloaded by
``blocklists``.
"""

from sitescrape.policy.content_filter import AdMatcher, ContentFilter, build_content_filter, filter_for_policy
from sitescrape.policy.throttle import Throttle

__all__ = ["AdMatcher", "ContentFilter", "Throttle", "build_content_filter", "filter_for_policy"]
