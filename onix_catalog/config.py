"""Configuration management."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration."""
    
    # Inputs
    ONIX_METADATA_DIR = os.getenv("ONIX_METADATA_DIR", "xml_metadata")
    CLASSIFICATION_WORKBOOK = os.getenv("CLASSIFICATION_WORKBOOK", "bisac.xlsx")
    CLASSIFICATION_SHEET = os.getenv("CLASSIFICATION_SHEET", "bisac code")
    SUBJECT_HEADING_SHEET = os.getenv("SUBJECT_HEADING_SHEET", "Subject Heading Text")
    
    # Outputs
    OUTPUT_PATH = os.getenv("OUTPUT_PATH", "output/book-metadata.xlsx")
    OUTPUT_SHEET = os.getenv("OUTPUT_SHEET", "Sheet1")
    STATE_PATH = os.getenv("STATE_PATH", "data/additional-book-info.json")
    
    # Defaults
    MAX_CONCURRENT_DOCUMENTS = int(os.getenv("MAX_CONCURRENT_DOCUMENTS", "5"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
