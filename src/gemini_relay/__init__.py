"""
Gemini relay package.

Provides:
- A FastAPI chat endpoint that forwards messages to the Gemini
  generateContent API, falling back across api versions and models
- An interactive command-line client for that endpoint
"""
