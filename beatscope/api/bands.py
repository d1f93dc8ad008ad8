"""Stateless band energy endpoint."""

import numpy as np
from fastapi import APIRouter, HTTPException

from beatscope.analysis.errors import AnalysisError
from beatscope.analysis.models import AnalysisFrame
from beatscope.analysis.spectrum import band_energies
from beatscope.api.schemas import BandEnergyResponse, FrameRequest

router = APIRouter()


def bands_to_response(energies) -> BandEnergyResponse:
    return BandEnergyResponse(**{band.value: energy for band, energy in energies.items()})


@router.post("/bands", response_model=BandEnergyResponse)
async def compute_bands(request: FrameRequest):
    """Energy of each frequency band in a single spectrum."""
    magnitudes = np.clip(np.asarray(request.frequency_magnitudes), 0, 255).astype(np.uint8)
    if request.time_samples is not None:
        if len(request.time_samples) != len(magnitudes):
            raise HTTPException(400, "time_samples must match frequency_magnitudes in length")
        samples = np.clip(np.asarray(request.time_samples), 0, 255).astype(np.uint8)
    else:
        samples = np.full(len(magnitudes), 128, dtype=np.uint8)

    frame = AnalysisFrame(
        frequency_magnitudes=magnitudes,
        time_samples=samples,
        sample_rate=request.sample_rate,
    )
    try:
        return bands_to_response(band_energies(frame))
    except AnalysisError as e:
        raise HTTPException(400, str(e))
