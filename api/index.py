"""
Vercel Serverless Entry Point

Vercel routes every /api/* request to this file; @vercel/python picks up the
module-level `app`. Routing happens in the blueprints under inverapp/api/.
"""

from inverapp import create_app

app = create_app()
