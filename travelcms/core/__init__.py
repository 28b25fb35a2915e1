"""
Core Content Store Logic
========================

Content store client, GROQ queries, image filename matching and the image
upload stages.
"""
