from src.ingestion.contact_extractor import extract_contacts, parse_contact_block
from src.ingestion.frame_decoder import decode_frame

__all__ = ["decode_frame", "extract_contacts", "parse_contact_block"]
