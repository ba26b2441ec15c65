"""snapvault command line interface"""
