"""
Vercel entry point for Portal SLA Engine API
"""
import os

# Set environment variables for serverless
os.environ.setdefault("ENVIRONMENT", "production")
os.environ.setdefault("SLA_EVALUATION_INTERVAL", "0")  # Disable scheduler in serverless

from mangum import Mangum

from portal.infrastructure.database import init_database
from portal.main import app

# Lifespan is off in serverless; the engine is created per cold start
init_database()

handler = Mangum(app, lifespan="off")
