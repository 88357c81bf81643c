"""
AI Services Package

This package contains the AI-related services for TrendPulse:
- LLM providers (OpenAI, Anthropic) behind a common base service
- Prompt templates
- The AI trend analyzer
"""
