"""
Vercel entry point for FastAPI application
"""
from gestao_fretes.main import app

# Export the FastAPI app for Vercel
handler = app
