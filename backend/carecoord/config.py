#Pydantic class designed specifically for configuration management.
#automatically reads values from Environment variables
from pydantic_settings import BaseSettings
from typing import List

#all configuration values needed
class Settings(BaseSettings):
    database_url: str = "sqlite:///./carecoord.db"
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 7
    #cost factor for bcrypt, lowered in tests
    bcrypt_rounds: int = 12
    cors_origins: List[str] = ["http://localhost:3000"]
    log_level: str = "INFO"

    #intervals advertised to clients (dashboards and the offline client)
    emergency_poll_seconds: int = 30
    offline_sync_seconds: int = 60

   #Tells Pydantic to load variables from a .env file
    class Config:
        env_file = ".env"

settings = Settings()
