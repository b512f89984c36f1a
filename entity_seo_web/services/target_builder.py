from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from entity_seo_web.domain.models import (
    HINT_BACKLINKS,
    HINT_COMPETITOR,
    HINT_ENTITY,
    HINT_LEADERSHIP,
    KIND_COMPANY,
    KIND_COMPETITOR,
    KIND_COMPETITOR_LEADER,
    KIND_KEYWORD,
    KIND_LEADER,
    KIND_WEBSITE,
    AnalysisForm,
    EntityTarget,
)
from entity_seo_web.services.url_normalization import GuessComUrlNormalizer, UrlNormalizer

logger = logging.getLogger(__name__)


@dataclass
class TargetBuilder:
    """
    Expands a submitted form into the ordered list of things to ask about:
    company, website, leaders, keywords, then competitors (and their leaders).
    """
    url_normalizer: UrlNormalizer = field(default_factory=GuessComUrlNormalizer)

    def derive(self, form: AnalysisForm) -> List[EntityTarget]:
        company = form.company_name.strip()
        at_company = f" at {company}" if company else ""
        targets: List[EntityTarget] = []

        if company:
            targets.append(EntityTarget(
                kind=KIND_COMPANY,
                label=f"Company: {company}",
                query_text=f"What is {company}? Tell me about this company.",
                analysis_hint=HINT_ENTITY,
            ))

        website = self.url_normalizer.normalize(form.website_url)
        if website:
            targets.append(EntityTarget(
                kind=KIND_WEBSITE,
                label=f"Website: {website}",
                query_text=(
                    f"What can you tell me about {website}? "
                    "Which websites link to it and how authoritative are they?"
                ),
                analysis_hint=HINT_BACKLINKS,
            ))

        for leader in form.leaders:
            name, role = leader.name.strip(), leader.role.strip()
            if name and role:
                targets.append(EntityTarget(
                    kind=KIND_LEADER,
                    label=f"{name} ({role})",
                    query_text=f"Who is {name}, {role}{at_company}?",
                    analysis_hint=HINT_LEADERSHIP,
                ))

        for keyword in form.keywords:
            keyword = keyword.strip()
            if keyword:
                targets.append(EntityTarget(
                    kind=KIND_KEYWORD,
                    label=f"Keyword: {keyword}",
                    query_text=f"{keyword} - what are the best companies or solutions for this?",
                    analysis_hint=HINT_ENTITY,
                ))

        for comp in form.competitors:
            url = self.url_normalizer.normalize(comp.url)
            if not url:
                continue
            display = comp.name.strip() or url
            targets.append(EntityTarget(
                kind=KIND_COMPETITOR,
                label=f"Competitor: {display}",
                query_text=(
                    f"What can you tell me about {display} ({url})? "
                    "Which websites, publications and podcasts link to or feature it?"
                ),
                analysis_hint=HINT_COMPETITOR,
            ))

            leader_name, leader_role = comp.leader_name.strip(), comp.leader_role.strip()
            if leader_name and leader_role:
                targets.append(EntityTarget(
                    kind=KIND_COMPETITOR_LEADER,
                    label=f"{leader_name} ({leader_role}, {display})",
                    query_text=f"Who is {leader_name}, {leader_role} at {display}?",
                    analysis_hint=HINT_LEADERSHIP,
                ))

        return _unique_by_label(targets)


def _unique_by_label(targets: List[EntityTarget]) -> List[EntityTarget]:
    # Labels key the run matrix; a repeated keyword or leader keeps its first occurrence.
    seen = set()
    out = []
    for t in targets:
        if t.label in seen:
            logger.info("Skipping duplicate target %r", t.label)
            continue
        seen.add(t.label)
        out.append(t)
    return out
