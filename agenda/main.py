import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from agenda.core import config
from agenda.database import engine, ensure_appointment_schema
from agenda.models import appointment
from agenda.routes import appointment_routes

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        appointment.Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL.')


@app.get('/')
def root():
    return {
        'status': 'Agenda API Running',
        'business_hours': f'{config.BUSINESS_OPEN_HOUR:02d}:00 - {config.BUSINESS_CLOSE_HOUR:02d}:00',
    }


app.include_router(appointment_routes.router, prefix='/agenda')
