import pytest

from emailcrawler.config import CrawlConfig
from emailcrawler.policy import DefaultPolicy, PredicatePolicy, ProfilePolicy, policy_from_config


def test_default_policy_always_scrapes() -> None:
    assert DefaultPolicy().should_scrape_emails("http://site.com/anything")


@pytest.mark.parametrize(
    "url, expected",
    [
        ("http://site.com/user/42", True),
        ("http://site.com/user/42/", True),
        ("http://site.com/user/42/list", False),
        ("http://site.com/page/3", False),
        ("http://site.com/friends/42", False),
        ("http://site.com/user/042", False),
        ("http://site.com/user/42abc", False),
        ("http://site.com/user/bob", False),
        ("http://site.com/", False),
    ],
)
def test_profile_policy(url: str, expected: bool) -> None:
    assert ProfilePolicy().should_scrape_emails(url) is expected


def test_profile_policy_is_configurable() -> None:
    policy = ProfilePolicy(excluded_segments=["archive"], member_markers=["member.php"])
    assert policy.should_scrape_emails("http://site.com/page/3")
    assert not policy.should_scrape_emails("http://site.com/archive/3")
    assert policy.should_scrape_emails("http://forum.site.com/member.php?u=12")


def test_predicate_policy() -> None:
    policy = PredicatePolicy(lambda url: url.endswith("/contact"))
    assert policy.should_scrape_emails("http://site.com/contact")
    assert not policy.should_scrape_emails("http://site.com/about")


def test_policy_from_config() -> None:
    assert isinstance(policy_from_config(CrawlConfig(policy="default")), DefaultPolicy)
    profile = policy_from_config(CrawlConfig(policy="profile", profile_member_markers=["member.php"]))
    assert isinstance(profile, ProfilePolicy)
    assert profile.member_markers == ("member.php",)
