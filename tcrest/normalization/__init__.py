"""Response envelope normalization"""
