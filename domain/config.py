class Config:
    def __init__(self, sample_rate=44100, input_device=None, output_device=None, buffer_size=1024,
                 analysis_window=4096, capture_settle_delay=0.5, max_record_seconds=10.0,
                 catalog_url="https://graphql.pokeapi.co/v1beta2", catalog_limit=20, catalog_pool_size=152,
                 http_timeout=10.0):
        '''
        Clasa Config centralizează toți parametrii de configurare utilizați în proiect.
        :param sample_rate: rata de eșantionare în Hz folosită la captarea microfonului (implicit 44100 Hz).
        :param input_device și output_device: dispozitivele de captare și redare (None = implicitul sistemului).
        :param buffer_size: dimensiunea blocului pentru stream-urile sounddevice.
        :param analysis_window: numărul maxim de eșantioane analizate (putere a lui 2).
        :param capture_settle_delay: pauza (secunde) dintre oprirea înregistrării și comparare,
        folosită doar când adaptorul audio nu garantează că datele captate sunt deja lizibile.
        :param max_record_seconds: durata maximă a unei înregistrări; după ea captarea se oprește singură.
        :param catalog_url, catalog_limit, catalog_pool_size: endpoint-ul GraphQL al catalogului,
        numărul de intrări pe pagină și numărul total de intrări din care se alege offset-ul aleator.
        :param http_timeout: timeout-ul (secunde) pentru cererile HTTP.
        '''
        if analysis_window <= 0 or analysis_window & (analysis_window - 1):
            raise ValueError(f"analysis_window trebuie să fie o putere a lui 2, nu {analysis_window}")

        self.sample_rate = sample_rate
        self.input_device = input_device
        self.output_device = output_device
        self.buffer_size = buffer_size
        self.analysis_window = analysis_window
        self.capture_settle_delay = capture_settle_delay
        self.max_record_seconds = max_record_seconds
        self.catalog_url = catalog_url
        self.catalog_limit = catalog_limit
        self.catalog_pool_size = catalog_pool_size
        self.http_timeout = http_timeout
