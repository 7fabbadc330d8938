# Development server for the hotel operations application using the in-memory store backend
from hotelops_lib.config.config import StoreConfig
from hotelops_lib.main import create_app, Config
app = create_app(Config(store=StoreConfig('memory')))
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
