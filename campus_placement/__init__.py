"""
Campus Placement Portal
Placement office backend with an analysis assistant.

Architecture:
- MongoDB: all placement data (students, companies, jobs, applications)
- Analytics core: normalization, statistics, eligibility, match scoring
- LLM (OpenAI-compatible): prose answers only, with a rule-based fallback
"""

__version__ = "1.0.0"
