"""
Deterministic stand-ins for the generative agents.

Each mock sleeps for a fixed delay and returns canned output derived from its
input, so pipelines can be demonstrated and tested without the generation
service.
"""

import re
import time
from abc import abstractmethod
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from .base import AgentExecutor, FormData, latest_output_with

DEFAULT_KEYWORDS = ["AI", "marketing", "automation"]
DEFAULT_PLATFORMS = ["twitter", "linkedin", "facebook"]


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


class MockExecutor(AgentExecutor):
    default_delay: float = 0.0

    def __init__(self, delay: Optional[float] = None):
        self.delay = self.default_delay if delay is None else delay

    def execute(self, input: FormData) -> FormData:
        if self.delay:
            time.sleep(self.delay)
        return self.respond(input)

    @abstractmethod
    def respond(self, input: FormData) -> FormData:
        """ Canned output for the given input. """


class MockContentResearchExecutor(MockExecutor):
    agent_id = "content-research"
    name = "Content Research"
    default_delay = 2.0

    def respond(self, input: FormData) -> FormData:
        return {
            "topic": input.get("topic"),
            "researchData": {
                "keyPoints": [
                    "AI is transforming content creation",
                    "Marketing automation saves 6+ hours per week",
                    "Personalization increases engagement by 42%",
                ],
                "sources": [
                    "Marketing AI Report 2024",
                    "Content Marketing Institute",
                    "HubSpot Marketing Statistics",
                ],
                "statistics": {
                    "adoptionRate": "67% of marketers use AI",
                    "roi": "3.5x average ROI on AI marketing tools",
                },
            },
            "depth": input.get("depth") or "standard",
        }


class MockBlogWriterExecutor(MockExecutor):
    agent_id = "blog-writer"
    name = "Blog Writer"
    default_delay = 3.0

    def respond(self, input: FormData) -> FormData:
        title = input.get("topic") or "How AI is Transforming Marketing"
        research = latest_output_with(input, "researchData") or {}
        key_points = (research.get("researchData") or {}).get("keyPoints") or []
        opening = key_points[0] if key_points else "AI is revolutionizing the industry"

        content = (
            f"# {title}\n\n"
            f"Based on recent research, {opening}...\n\n"
            "## Key Insights\n\n"
            "- Marketing teams are seeing significant productivity gains\n"
            "- Personalization is driving higher engagement\n"
            "- ROI on AI tools is compelling\n\n"
            "## Conclusion\n\n"
            "The future of marketing is here."
        )
        return {
            "title": title,
            "content": content,
            "wordCount": input.get("wordCount") or 1500,
            "tone": input.get("tone") or "professional",
            "keywords": input.get("keywords") or list(DEFAULT_KEYWORDS),
        }


class MockSEOOptimizerExecutor(MockExecutor):
    agent_id = "seo-optimizer"
    name = "SEO Optimizer"
    default_delay = 1.5

    def respond(self, input: FormData) -> FormData:
        blog = latest_output_with(input, "content") or {}
        title = blog.get("title") or "Blog Post"
        return {
            "optimizedTitle": f"{title} | Ultimate Guide",
            "metaDescription": (
                "Discover how AI is transforming marketing with proven strategies "
                "and real-world examples."
            ),
            "keywords": blog.get("keywords") or list(DEFAULT_KEYWORDS),
            "seoScore": 92,
            "recommendations": [
                "Add internal links to related content",
                "Include more long-tail keywords",
                "Optimize image alt text",
            ],
            "slug": slugify(title),
        }


class MockSocialMediaExecutor(MockExecutor):
    agent_id = "social-media"
    name = "Social Media"
    default_delay = 2.0

    def respond(self, input: FormData) -> FormData:
        blog = latest_output_with(input, "content") or {}
        seo = latest_output_with(input, "slug") or {}
        title = blog.get("title") or "New blog post"
        content = blog.get("content") if isinstance(blog.get("content"), str) else ""
        preview = content[:200] if content else "Read our comprehensive guide"
        link = f"Read more: example.com/blog/{seo['slug']}" if seo.get("slug") else ""

        return {
            "platforms": input.get("platforms") or list(DEFAULT_PLATFORMS),
            "posts": {
                "twitter": f"{title}\n\nDiscover how AI is transforming marketing\n\n{link}".rstrip(),
                "linkedin": f"Excited to share our latest insights on AI in marketing!\n\n{preview}...",
                "facebook": f"New article alert!\n\n{title}\n\nClick to read more!",
            },
            "scheduledTime": (datetime.now(timezone.utc) + timedelta(days=1)).isoformat(),
            "hashtags": ["AI", "Marketing", "ContentMarketing", "DigitalMarketing"],
        }


def mock_executors(delay: Optional[float] = None) -> List[AgentExecutor]:
    """ All mock executors; ``delay`` overrides every per-agent default. """
    return [
        MockContentResearchExecutor(delay),
        MockBlogWriterExecutor(delay),
        MockSEOOptimizerExecutor(delay),
        MockSocialMediaExecutor(delay),
    ]
