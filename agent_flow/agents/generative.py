"""
Agent executors backed by the generation service (see ``llm_api``).
"""

import json
import re
from abc import abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

from ..errors import GenerationError
from ..llm_api import LLMClient
from .base import AgentExecutor, FormData, latest_output_with


class GenerativeExecutor(AgentExecutor):
    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm

    def execute(self, input: FormData) -> FormData:
        if self.llm is None or not self.llm.is_available():
            raise GenerationError("Generation service not configured")
        return self.generate(input)

    @abstractmethod
    def generate(self, input: FormData) -> FormData:
        """ Build the prompt(s), call the service and shape the output. """

    def _json_object(self, prompt: str, schema: Optional[str] = None) -> dict:
        data = self.llm.generate_json(prompt, schema)
        if not isinstance(data, dict):
            raise GenerationError(f"{self.name}: expected a JSON object, got {type(data).__name__}")
        return data


class ContentResearchExecutor(GenerativeExecutor):
    agent_id = "content-research"
    name = "Content Research"

    SHAPE = '{"keyPoints": [str], "sources": [str], "statistics": {str: str}}'

    def generate(self, input: FormData) -> FormData:
        topic = input.get("topic") or "AI in Marketing"
        depth = input.get("depth") or "standard"
        include_statistics = input.get("includeStatistics") is not False

        prompt = (
            f'You are a professional content researcher. Research the topic: "{topic}"\n\n'
            f"Depth level: {depth}\n"
            f"Include statistics: {str(include_statistics).lower()}\n\n"
            "Provide 5-7 key points, 3-5 credible sources and relevant statistics."
        )
        return {
            "topic": topic,
            "researchData": self._json_object(prompt, self.SHAPE),
            "depth": depth,
            "includeStatistics": include_statistics,
        }


class BlogWriterExecutor(GenerativeExecutor):
    agent_id = "blog-writer"
    name = "Blog Writer"

    def generate(self, input: FormData) -> FormData:
        topic = input.get("topic") or "How AI is Transforming Marketing"
        tone = input.get("tone") or "professional"
        word_count = input.get("wordCount") or 1500
        keywords = _string_list(input.get("keywords")) or ["AI", "marketing", "automation"]

        research = latest_output_with(input, "researchData")
        research_context = ""
        if research:
            research_context = (
                "\n\nResearch data to incorporate:\n"
                + json.dumps(research["researchData"], indent=2)
            )

        prompt = (
            f'You are a professional blog writer. Write a comprehensive blog post on: "{topic}"\n\n'
            "Requirements:\n"
            f"- Tone: {tone}\n"
            f"- Target word count: {word_count} words\n"
            f"- Include these keywords naturally: {', '.join(keywords)}"
            f"{research_context}\n\n"
            "Write the post in Markdown with a compelling title, clear headings, "
            "an engaging introduction and a strong conclusion.\n\n"
            "Return only the markdown content."
        )
        content = self.llm.generate_text(prompt)

        match = re.search(r"^#\s+(.+)$", content, flags=re.MULTILINE)
        return {
            "title": match.group(1).strip() if match else topic,
            "content": content,
            "wordCount": word_count,
            "tone": tone,
            "keywords": keywords,
        }


class SEOOptimizerExecutor(GenerativeExecutor):
    agent_id = "seo-optimizer"
    name = "SEO Optimizer"

    SHAPE = (
        '{"optimizedTitle": str, "metaDescription": str, "keywords": [str], '
        '"seoScore": int, "recommendations": [str], "slug": str}'
    )

    def generate(self, input: FormData) -> FormData:
        blog = latest_output_with(input, "content") or {}
        title = blog.get("title") or "Blog Post"
        content = blog.get("content") or input.get("content") or ""
        keywords = _string_list(blog.get("keywords")) or _string_list(input.get("focusKeyword")) \
            or ["AI", "marketing"]

        prompt = (
            "You are an SEO expert. Optimize this blog post for search engines:\n\n"
            f"Title: {title}\n"
            f"Content: {content[:500]}...\n"
            f"Keywords: {', '.join(keywords)}\n\n"
            "Provide an SEO-friendly title, a 150-160 character meta description, "
            "keywords, a 0-100 score, recommendations and a URL slug."
        )
        return self._json_object(prompt, self.SHAPE)


class SocialMediaExecutor(GenerativeExecutor):
    agent_id = "social-media"
    name = "Social Media"

    SHAPE = '{"posts": {platform: str}, "hashtags": [str]}'

    def generate(self, input: FormData) -> FormData:
        blog = latest_output_with(input, "content") or {}
        seo = latest_output_with(input, "slug") or {}
        title = blog.get("title") or "New Blog Post"
        content = blog.get("content") or input.get("content") or ""
        slug = seo.get("slug") or "blog-post"
        platforms = _string_list(input.get("platforms")) or _string_list(input.get("platform")) \
            or ["twitter", "linkedin", "facebook"]

        prompt = (
            "You are a social media expert. Create engaging social media posts for this blog:\n\n"
            f"Title: {title}\n"
            f"Content: {content[:300]}...\n"
            f"URL: example.com/blog/{slug}\n\n"
            f"Create posts for: {', '.join(platforms)}"
        )
        data = self._json_object(prompt, self.SHAPE)
        return {
            "platforms": platforms,
            "posts": data.get("posts") or {},
            "hashtags": data.get("hashtags") or [],
            "scheduledTime": (datetime.now(timezone.utc) + timedelta(days=1)).isoformat(),
        }


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, list):
        return [str(v) for v in value if v not in (None, "")]
    return []


def generative_executors(llm: Optional[LLMClient] = None) -> List[AgentExecutor]:
    return [
        ContentResearchExecutor(llm),
        BlogWriterExecutor(llm),
        SEOOptimizerExecutor(llm),
        SocialMediaExecutor(llm),
    ]
