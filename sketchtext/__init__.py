"""SketchText handwriting-to-document system.

Hand-drawn strokes are recognized with Tesseract OCR and the resulting
text is merged into a rich-text document.
"""
