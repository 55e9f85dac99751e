import base64
import io
import os
from typing import List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security.api_key import APIKeyHeader
from pydantic import BaseModel, Field
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_403_FORBIDDEN

from pathfinder import MalformedMazeError, Maze, Solver

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("PATHFINDER_CORS_ORIGINS", "http://localhost:8080").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class MazeRequest(BaseModel):
    rows: List[str]


class SolutionRequest(BaseModel):
    rows: List[str]
    actions: List[str]


class RenderRequest(BaseModel):
    rows: List[str]
    actions: Optional[List[str]] = None
    size: int = Field(256, ge=1, le=2048)


API_KEY_NAME = "X-API-Key"

api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)


async def get_api_key(api_key_header: str = Security(api_key_header)):
    # Read per request so the key can be rotated without a restart
    api_key = os.environ.get("PATHFINDER_API_KEY")
    if not api_key:
        return None
    if api_key_header is None:
        raise HTTPException(
            status_code=HTTP_403_FORBIDDEN, detail="API Key header is missing"
        )
    if api_key_header != api_key:
        raise HTTPException(
            status_code=HTTP_403_FORBIDDEN, detail="Invalid API Key"
        )
    return api_key_header


def load_maze(rows):
    try:
        return Maze(rows)
    except MalformedMazeError as e:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=str(e))


@app.get("/health")
async def health():
    return {"message": "OK"}


@app.post("/solve")
async def solve(request: MazeRequest, api_key: str = Depends(get_api_key)):
    maze = load_maze(request.rows)
    solution = Solver.solve(maze)
    if solution is None:
        return {"solution": None, "valid": False, "cost": None}

    is_valid, cost = maze.test_solution(solution)
    return {"solution": [move.value for move in solution], "valid": is_valid, "cost": cost}


@app.post("/test_solution")
async def check_solution(request: SolutionRequest, api_key: str = Depends(get_api_key)):
    maze = load_maze(request.rows)
    is_valid, cost = maze.test_solution(request.actions)
    return {"valid": is_valid, "cost": cost}


@app.post("/render")
async def render(request: RenderRequest, api_key: str = Depends(get_api_key)):
    maze = load_maze(request.rows)
    size = (request.size, request.size)
    try:
        if request.actions is None:
            image = maze.save_maze_image(None, target_size=size)
        else:
            image = maze.save_solved_maze_image(request.actions, None, target_size=size)
    except ValueError as e:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=str(e))
    return {"image": image_to_base64(image)}


def image_to_base64(image):
    buffered = io.BytesIO()
    image.save(buffered, format="PNG")
    return base64.b64encode(buffered.getvalue()).decode()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
